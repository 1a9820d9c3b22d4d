"""Tests for the protostage command line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from protostage.cli import GenerateArgs, build_request, main
from protostage.config import OutputTarget
from protostage.sources.extractor import staging_name


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "proto"
    directory.mkdir()
    (directory / "a.proto").write_text('syntax = "proto3";')
    return directory


class TestMain:
    """Test command dispatch and exit codes."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: protostage" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "protostage" in capsys.readouterr().out

    def test_scan(self, source_dir: Path, capsys):
        assert main(["scan", str(source_dir)]) == 0
        assert str(source_dir / "a.proto") in capsys.readouterr().out

    def test_generate_dry_run_prints_command(self, source_dir: Path, fake_protoc: Path, tmp_path: Path, capsys):
        gen = tmp_path / "gen"

        exit_code = main(
            [
                "generate",
                "--source-dir",
                str(source_dir),
                "--out",
                f"java={gen}",
                "--protoc",
                str(fake_protoc),
                "--build-dir",
                str(tmp_path / "build"),
                "--fatal-warnings",
                "--dry-run",
            ]
        )

        assert exit_code == 0
        expected = f"{fake_protoc} --proto_path={source_dir} --java_out={gen} --fatal_warnings {source_dir / 'a.proto'}"
        assert expected in capsys.readouterr().out

    def test_generate_runs_protoc(self, source_dir: Path, fake_protoc: Path, tmp_path: Path):
        with patch("protostage.generator.ProtocExecutor") as executor:
            executor.return_value.invoke.return_value = True
            exit_code = main(["generate", "-s", str(source_dir), "-o", f"python={tmp_path / 'gen'}", "--protoc", str(fake_protoc)])

        assert exit_code == 0
        executor.return_value.invoke.assert_called_once()

    def test_generate_protoc_failure(self, source_dir: Path, fake_protoc: Path, tmp_path: Path):
        with patch("protostage.generator.ProtocExecutor") as executor:
            executor.return_value.invoke.return_value = False
            exit_code = main(["generate", "-s", str(source_dir), "-o", f"java={tmp_path / 'gen'}", "--protoc", str(fake_protoc)])

        assert exit_code == 1

    def test_generate_without_outputs_is_a_usage_error(self, source_dir: Path):
        assert main(["generate", "-s", str(source_dir)]) == 2

    def test_generate_bad_output_argument(self, source_dir: Path):
        assert main(["generate", "-s", str(source_dir), "-o", "java"]) == 2

    def test_generate_missing_protoc(self, source_dir: Path, tmp_path: Path):
        exit_code = main(["generate", "-s", str(source_dir), "-o", f"java={tmp_path / 'gen'}", "--protoc", str(tmp_path / "nope")])
        assert exit_code == 1

    def test_extract(self, make_archive, tmp_path: Path):
        archive = make_archive({"x/y.proto": ""}, name="deps.jar")
        build_dir = tmp_path / "build"

        assert main(["extract", str(archive), "--build-dir", str(build_dir)]) == 0
        assert (build_dir / "protostage" / "extracted" / staging_name(archive) / "x" / "y.proto").is_file()

    def test_extract_corrupt_archive(self, tmp_path: Path):
        corrupt = tmp_path / "bad.jar"
        corrupt.write_bytes(b"nope")

        assert main(["extract", str(corrupt), "--build-dir", str(tmp_path / "build")]) == 1

    def test_extract_corrupt_entry_data(self, make_archive, corrupt_entry_data, tmp_path: Path, capsys):
        archive = make_archive({"a.proto": "message A { int32 id = 1; }"}, name="deps.jar")
        corrupt_entry_data(archive, "a.proto")
        build_dir = tmp_path / "build"

        assert main(["extract", str(archive), "--build-dir", str(build_dir)]) == 1
        assert "Error:" in capsys.readouterr().out
        assert not (build_dir / "protostage" / "extracted" / staging_name(archive) / "a.proto").exists()

    def test_generate_corrupt_entry_data(self, make_archive, corrupt_entry_data, fake_protoc: Path, tmp_path: Path):
        archive = make_archive({"a.proto": "message A { int32 id = 1; }"}, name="deps.jar")
        corrupt_entry_data(archive, "a.proto")

        exit_code = main(["generate", "-a", str(archive), "-o", f"java={tmp_path / 'gen'}", "--protoc", str(fake_protoc), "-b", str(tmp_path / "build")])

        assert exit_code == 1


class TestBuildRequest:
    """Test merging a config file with command line arguments."""

    def test_cli_values_extend_config_lists(self, tmp_path: Path):
        config = tmp_path / "protostage.json"
        config.write_text(
            json.dumps(
                {
                    "build_output_dir": "from-config",
                    "source_dirs": ["config/proto"],
                    "outputs": [{"kind": "java", "directory": "gen/java"}],
                    "fatal_warnings": True,
                }
            )
        )

        request = build_request(GenerateArgs(config=config, source_dirs=[Path("cli/proto")], outputs=["python=gen/py"], jobs=3))

        assert request.build_output_dir == Path("from-config")
        assert request.source_dirs == (Path("config/proto"), Path("cli/proto"))
        assert request.outputs == (OutputTarget("java", Path("gen/java")), OutputTarget("python", Path("gen/py")))
        assert request.fatal_warnings
        assert request.max_workers == 3

    def test_cli_build_dir_overrides_config(self, tmp_path: Path):
        config = tmp_path / "protostage.json"
        config.write_text(json.dumps({"build_output_dir": "from-config", "outputs": ["java=gen"]}))

        request = build_request(GenerateArgs(config=config, build_dir=Path("from-cli")))

        assert request.build_output_dir == Path("from-cli")

    def test_default_build_dir(self):
        request = build_request(GenerateArgs(outputs=["java=gen"]))
        assert request.build_output_dir == Path("build")

    def test_config_must_be_an_object(self, tmp_path: Path):
        config = tmp_path / "protostage.json"
        config.write_text("[]")

        with pytest.raises(ValueError):
            build_request(GenerateArgs(config=config))
