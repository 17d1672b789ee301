"""Tests for ServerConfig loading and validation."""

from pathlib import Path

import pytest

from ranking import RankingConfig
from serving import ServerConfig
from serving.config import split_address


class TestSplitAddress:
    @pytest.mark.parametrize(
        "address, expected",
        [
            ("0.0.0.0:1987", ("0.0.0.0", 1987)),
            (":1976", ("0.0.0.0", 1976)),
            ("[::1]:8080", ("::1", 8080)),
            ("localhost:0", ("localhost", 0)),
        ],
    )
    def test_valid_addresses(self, address: str, expected) -> None:
        assert split_address(address) == expected

    @pytest.mark.parametrize("address", ["1987", "host:", "host:http"])
    def test_invalid_addresses(self, address: str) -> None:
        with pytest.raises(ValueError):
            split_address(address)


class TestServerConfig:
    def test_defaults_require_tls_material(self) -> None:
        with pytest.raises(ValueError, match="tls_cert"):
            ServerConfig()

    def test_plaintext_defaults(self) -> None:
        config = ServerConfig(tls_disable=True)

        assert config.http_address == "0.0.0.0:1987"
        assert config.grpc_address == "0.0.0.0:1976"
        assert config.ranking == RankingConfig()

    def test_paths_and_ranking_are_converted(self) -> None:
        config = ServerConfig(
            tls_cert="cert.pem",
            tls_key="key.pem",
            ranking={"max_answers": 1},
        )

        assert config.tls_cert == Path("cert.pem")
        assert config.ranking.max_answers == 1

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValueError):
            ServerConfig(tls_disable=True, log_level="verbose")

    def test_invalid_address(self) -> None:
        with pytest.raises(ValueError):
            ServerConfig(tls_disable=True, http_address="nowhere")

    def test_from_dict_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            ServerConfig.from_dict({"tls_disable": True, "port": 80})

    def test_from_yaml_with_overrides(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text(
            "http_address: 127.0.0.1:8000\n"
            "tls_disable: true\n"
            "ranking:\n"
            "  min_confidence: 0.2\n"
        )

        config = ServerConfig.from_yaml(path, grpc_address="127.0.0.1:9000", log_level=None)

        assert config.http_address == "127.0.0.1:8000"
        assert config.grpc_address == "127.0.0.1:9000"
        assert config.log_level == "info"
        assert config.ranking.min_confidence == 0.2

    def test_from_yaml_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert ServerConfig.from_yaml(path, tls_disable=True).tls_disable is True

    def test_empty_ranking_section_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text("tls_disable: true\nranking:\n")

        config = ServerConfig.from_yaml(path)

        assert config.ranking == RankingConfig()
        assert config.to_dict()["ranking"] == RankingConfig().to_dict()

    @pytest.mark.parametrize("ranking", [3, "strict", [1, 2]])
    def test_invalid_ranking_type(self, ranking) -> None:
        with pytest.raises(ValueError, match="ranking"):
            ServerConfig(tls_disable=True, ranking=ranking)

    def test_to_dict(self) -> None:
        data = ServerConfig(tls_cert="c.pem", tls_key="k.pem").to_dict()

        assert data["tls_cert"] == "c.pem"
        assert data["tls_disable"] is False
        assert data["ranking"] == RankingConfig().to_dict()
