import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path

from core.types import ErrorCategory
from core.utils.json_serializers import json_serializer


class Color(Enum):
    RED = "red"


# =========================================================================
# json_serializer
# =========================================================================


class TestJsonSerializer:

    def test_serializes_datetime_to_isoformat(self):
        dt = datetime(2025, 6, 15, 10, 30, 0)
        assert json_serializer(dt) == "2025-06-15T10:30:00"

    def test_serializes_date_to_isoformat(self):
        assert json_serializer(date(2025, 12, 25)) == "2025-12-25"

    def test_serializes_decimal_to_float(self):
        result = json_serializer(Decimal("3.14"))
        assert result == 3.14
        assert isinstance(result, float)

    def test_serializes_path_to_string(self):
        assert json_serializer(Path("/srv/ftp/pub")) == str(Path("/srv/ftp/pub"))

    def test_decodes_bytes(self):
        assert json_serializer(b"226 Transfer complete") == "226 Transfer complete"

    def test_replaces_undecodable_bytes(self):
        assert json_serializer(b"caf\xe9") == "caf�"

    def test_serializes_enum_to_value(self):
        assert json_serializer(Color.RED) == "red"
        assert json_serializer(ErrorCategory.TRANSIENT) == "transient"

    def test_fallback_to_string(self):
        assert json_serializer(42) == "42"
        assert json_serializer(None) == "None"

    def test_works_as_json_default(self):
        payload = {"when": date(2026, 1, 5), "where": Path("downloads")}
        assert json.loads(json.dumps(payload, default=json_serializer)) == {
            "when": "2026-01-05",
            "where": "downloads",
        }
