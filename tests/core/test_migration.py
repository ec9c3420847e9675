"""看板文件 Schema 升级测试"""

from kanbrawl.core.models import Board, SortBy, SortOrder
from kanbrawl.core.store import (
    CURRENT_SCHEMA_VERSION,
    DEFAULT_COLUMNS,
    detect_schema_version,
    infer_sort_policy,
    upcast_board,
)


class TestInferSortPolicy:
    def test_backlog_columns_sort_by_priority(self):
        for name in ["Todo", "to do", "TO-DO", " Backlog "]:
            assert infer_sort_policy(name) == (SortBy.PRIORITY, SortOrder.ASC)

    def test_finished_columns_sort_by_updated_desc(self):
        for name in ["Done", "completed", "Closed", "archived"]:
            assert infer_sort_policy(name) == (SortBy.UPDATED, SortOrder.DESC)

    def test_other_columns_sort_by_created(self):
        assert infer_sort_policy("In progress") == (SortBy.CREATED, SortOrder.ASC)


class TestUpcastBoard:
    def test_detect_version(self):
        assert detect_schema_version({"columns": ["Todo"]}) == 1
        assert detect_schema_version({"columns": [{"name": "Todo"}]}) == CURRENT_SCHEMA_VERSION
        assert detect_schema_version({}) == CURRENT_SCHEMA_VERSION

    def test_empty_document_gets_default_columns(self):
        data = upcast_board({})
        assert data["columns"] == DEFAULT_COLUMNS
        assert data["tasks"] == []

    def test_v1_string_columns(self):
        """v1 纯字符串列升级为结构化列，排序策略按列名推断"""
        raw = {"columns": ["Todo", "Review", "Done"], "tasks": []}
        board = Board.model_validate(upcast_board(raw))

        assert board.column_names() == ["Todo", "Review", "Done"]
        assert board.columns[0].sort_by == SortBy.PRIORITY
        assert board.columns[1].sort_by == SortBy.CREATED
        assert board.columns[2].sort_by == SortBy.UPDATED
        assert board.columns[2].sort_order == SortOrder.DESC

    def test_v2_missing_sort_fields_inferred(self):
        raw = {"columns": [{"name": "Done"}, {"name": "Todo", "sortBy": "created"}]}
        columns = upcast_board(raw)["columns"]
        assert columns[0] == {"name": "Done", "sortBy": "updated", "sortOrder": "desc"}
        # 已有字段保持不变
        assert columns[1]["sortBy"] == "created"

    def test_input_not_mutated(self):
        raw = {"columns": ["Todo"]}
        upcast_board(raw)
        assert raw == {"columns": ["Todo"]}

    def test_theme_preserved(self):
        assert upcast_board({"columns": ["Todo"], "theme": "light"})["theme"] == "light"
