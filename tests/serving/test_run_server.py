"""Tests for the command line entry point."""

from pathlib import Path

import pytest

from serving import ServerConfig
from serving.run_server import build_config, build_parser, load_factory, main


class TestLoadFactory:
    def test_resolves_callable(self) -> None:
        assert load_factory("ranking.tokens:RegexTokenizer").__name__ == "RegexTokenizer"

    @pytest.mark.parametrize("reference", ["ranking.tokens", ":pad", "ranking.tokens:"])
    def test_malformed_reference(self, reference: str) -> None:
        with pytest.raises(ValueError):
            load_factory(reference)

    def test_non_callable(self) -> None:
        with pytest.raises(ValueError):
            load_factory("ranking.tokens:CLS_TOKEN")


class TestBuildConfig:
    def test_flags_only(self) -> None:
        args = build_parser().parse_args(
            ["--model", "m:f", "--tls-disable", "--address", "127.0.0.1:8000"]
        )
        config = build_config(args)

        assert config.tls_disable is True
        assert config.http_address == "127.0.0.1:8000"
        assert config.serialize_inference is False

    def test_flags_override_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text("tls_disable: true\nlog_level: debug\nserialize_inference: false\n")

        args = build_parser().parse_args(
            ["--model", "m:f", "--config", str(path), "--serialize-inference"]
        )
        config = build_config(args)

        assert config.log_level == "debug"
        assert config.serialize_inference is True

    def test_tls_flags(self) -> None:
        args = build_parser().parse_args(
            ["--model", "m:f", "--tls-cert", "c.pem", "--tls-key", "k.pem"]
        )
        assert build_config(args) == ServerConfig(tls_cert=Path("c.pem"), tls_key=Path("k.pem"))

    def test_main_rejects_incomplete_tls(self) -> None:
        """Missing certificate without --tls-disable is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--model", "m:f"])
        assert exc_info.value.code == 2
