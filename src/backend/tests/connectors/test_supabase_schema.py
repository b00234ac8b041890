from unittest.mock import patch

import pytest

from connectors.supabase.client import SupabaseHttpError
from connectors.supabase.config import SupabaseConfig
from connectors.supabase.schema import fetch_sample_columns, fetch_sample_rows, verify_columns


CFG = SupabaseConfig(url="https://demo.supabase.co", api_key="k")


def test_sample_columns_come_from_first_row():
    with patch(
        "connectors.supabase.schema.supabase_request",
        return_value=[{"id": "c1", "name": "Acme", "billingDay": 5}],
    ) as request:
        assert fetch_sample_columns(CFG, "Client") == ["id", "name", "billingDay"]
    request.assert_called_once_with(CFG, "GET", "Client", params={"select": "*", "limit": 1})


def test_sample_columns_of_empty_table():
    with patch("connectors.supabase.schema.supabase_request", return_value=[]):
        assert fetch_sample_columns(CFG, "Client") == []


def test_sample_rows_joins_columns():
    with patch("connectors.supabase.schema.supabase_request", return_value=[{"name": "Acme"}, "junk"]) as request:
        rows = fetch_sample_rows(CFG, "Client", columns=["name", "status"], limit=5)
    assert rows == [{"name": "Acme"}]
    assert request.call_args.kwargs["params"] == {"select": "name,status", "limit": 5}


def test_sample_rows_rejects_bad_limit():
    with pytest.raises(ValueError):
        fetch_sample_rows(CFG, "Client", limit=0)


def test_verify_columns_sorts_present_missing_and_errors():
    def _fake_request(config, method, table, *, params):
        column = params["select"]
        assert params["limit"] == 0
        if column == "billing_day":
            raise SupabaseHttpError(400, "column Client.billing_day does not exist", code="42703")
        if column == "service_details":
            raise SupabaseHttpError(400, "Could not find the column", code="PGRST204")
        if column == "notes":
            raise SupabaseHttpError(401, "JWT expired", code="PGRST301")
        return []

    with patch("connectors.supabase.schema.supabase_request", _fake_request):
        check = verify_columns(CFG, "Client", ["name", "billing_day", "service_details", "notes"])

    assert check.present == ("name",)
    assert check.missing == ("billing_day", "service_details")
    assert list(check.errors) == ["notes"]
    assert check.ok is False


def test_verify_columns_all_present():
    with patch("connectors.supabase.schema.supabase_request", return_value=[]):
        check = verify_columns(CFG, "Client", ["name", "status"])
    assert check.ok is True
    assert check.present == ("name", "status")
