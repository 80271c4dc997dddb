"""
Tests for loading and validating billing configuration.
"""

import pytest
import yaml

from billing_config import CONFIG_PATH_ENV, DATABASE_URL_ENV, get_active_config
from billing_config.loader import parse_config
from billing_config.schema import BillingConfig
from billing_kernel.domain.actor import ActorRole
from billing_kernel.domain.timesheet import NetPayPolicy


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    monkeypatch.delenv(DATABASE_URL_ENV, raising=False)


def _write(tmp_path, data):
    path = tmp_path / "billing.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaults:
    def test_bundled_defaults_match_the_schema(self):
        config = get_active_config()

        assert config.net_pay_policy == NetPayPolicy.JOBSEEKER_PAY
        assert config.invoice_numbers.width == 6
        assert config.invoice_numbers.prefix == "INV-"
        assert config.pagination.default_page_size == 10
        assert config.pagination.max_page_size == 100
        assert config.delete_roles == frozenset({ActorRole.ADMIN, ActorRole.RECRUITER})
        assert config.checksum

    def test_empty_document_takes_every_default(self):
        config = parse_config({})

        defaults = BillingConfig()
        assert config.net_pay_policy == defaults.net_pay_policy
        assert config.pagination == defaults.pagination
        assert config.delete_roles == defaults.delete_roles


class TestOverrides:
    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        path = _write(
            tmp_path,
            {
                "calculation": {"net_pay_policy": "margin"},
                "access": {"delete_roles": ["admin"]},
            },
        )
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))

        config = get_active_config()

        assert config.net_pay_policy == NetPayPolicy.MARGIN
        assert config.delete_roles == frozenset({ActorRole.ADMIN})
        assert config.invoice_numbers.width == 6

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "postgresql://billing@localhost/billing")

        assert get_active_config().database_url == "postgresql://billing@localhost/billing"

    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "missing.yaml"))
        path = _write(tmp_path, {"invoice_numbers": {"width": 8, "prefix": "BT-"}})

        config = get_active_config(path)

        assert config.invoice_numbers.width == 8
        assert config.invoice_numbers.prefix == "BT-"

    def test_checksum_tracks_content(self):
        first = parse_config({"pagination": {"max_page_size": 50}})
        second = parse_config({"pagination": {"max_page_size": 60}})

        assert first.checksum != second.checksum
        assert first.checksum == parse_config({"pagination": {"max_page_size": 50}}).checksum

    def test_config_trace_is_logged(self, captured_logs):
        get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "BILLING_CONFIG_TRACE"]
        assert traces[0]["net_pay_policy"] == "jobseeker_pay"
        assert traces[0]["database_url_override"] is False


class TestInvalidValues:
    @pytest.mark.parametrize(
        "data, key",
        [
            ({"calculation": {"net_pay_policy": "gross"}}, "net_pay_policy"),
            ({"invoice_numbers": {"width": 0}}, "width"),
            ({"invoice_numbers": {"width": True}}, "width"),
            ({"invoice_numbers": {"width": 33}}, "width"),
            ({"pagination": {"max_page_size": "ten"}}, "max_page_size"),
            ({"pagination": {"default_page_size": 50, "max_page_size": 20}}, "default_page_size"),
            ({"access": {"delete_roles": []}}, "delete_roles"),
            ({"access": {"delete_roles": ["owner"]}}, "delete_roles"),
        ],
    )
    def test_rejected(self, data, key):
        with pytest.raises(ValueError, match=key):
            parse_config(data)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")
