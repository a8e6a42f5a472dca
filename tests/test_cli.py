"""Tests for the CLI interface."""

import pytest
from pathlib import Path
from unittest.mock import patch, Mock

from typer.testing import CliRunner

from spark_text.cli import EXIT_NO_CONTENT, app, find_files
from spark_text.errors import ExportError


runner = CliRunner()


class TestFindFiles:
    """Tests for folder scanning."""

    def test_finds_supported_files_recursively(self, tmp_path: Path):
        """Test that only supported extensions are collected."""
        (tmp_path / "a.md").write_text("a")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "b.html").write_text("<p>b</p>")
        (tmp_path / "ignored.xyz").write_text("x")

        files = find_files(tmp_path)

        assert files == sorted([tmp_path / "a.md", tmp_path / "sub" / "b.html"])

    def test_empty_folder(self, tmp_path: Path):
        """Test scanning a folder with nothing to convert."""
        assert find_files(tmp_path) == []


class TestCLI:
    """Tests for CLI commands."""

    def test_version_flag(self):
        """Test --version flag."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "Spark Text" in result.stdout

    def test_help_flag(self):
        """Test --help flag."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "convert" in result.stdout
        assert "salvage" in result.stdout

    def test_missing_file_error(self, tmp_path: Path):
        """Test error when file doesn't exist."""
        fake_path = tmp_path / "nonexistent.md"
        result = runner.invoke(app, ["convert", str(fake_path)])

        assert result.exit_code != 0


class TestConvertCommand:
    """Tests for the convert command."""

    def test_single_file(self, tmp_markup_file: Path, tmp_path: Path):
        """Test converting one file to Markdown."""
        out_dir = tmp_path / "out"
        result = runner.invoke(
            app, ["convert", str(tmp_markup_file), "--to", "markdown", "-o", str(out_dir)]
        )

        assert result.exit_code == 0
        assert "Success" in result.stdout
        content = (out_dir / "notas.md").read_text(encoding="utf-8")
        assert content.startswith("## Resumen")

    def test_custom_title(self, tmp_markup_file: Path, tmp_path: Path):
        """Test that --title names the output file."""
        result = runner.invoke(
            app,
            ["convert", str(tmp_markup_file), "--to", "txt", "-o", str(tmp_path), "-t", "Resumen final"],
        )

        assert result.exit_code == 0
        assert (tmp_path / "Resumen final.txt").exists()

    def test_md_alias(self, tmp_markup_file: Path, tmp_path: Path):
        """Test the md shorthand for Markdown."""
        result = runner.invoke(app, ["convert", str(tmp_markup_file), "--to", "md", "-o", str(tmp_path)])

        assert result.exit_code == 0
        assert (tmp_path / "notas.md").exists()

    def test_unsupported_format(self, tmp_markup_file: Path):
        """Test that an unknown export format exits with an error."""
        result = runner.invoke(app, ["convert", str(tmp_markup_file), "--to", "rtf"])

        assert result.exit_code == 1
        assert "Unsupported export format" in result.stdout

    def test_unsupported_input(self, tmp_path: Path):
        """Test that an unknown input extension exits with an error."""
        unsupported = tmp_path / "file.xyz"
        unsupported.write_text("content")

        result = runner.invoke(app, ["convert", str(unsupported)])

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_invalid_docx(self, tmp_path: Path):
        """Test a damaged Word file."""
        broken = tmp_path / "roto.docx"
        broken.write_bytes(b"not a zip")

        result = runner.invoke(app, ["convert", str(broken), "--to", "txt"])

        assert result.exit_code == 1

    @patch("spark_text.cli.DocumentConverter")
    def test_export_failure(self, mock_converter_class: Mock, tmp_markup_file: Path):
        """Test that export failures are reported."""
        mock_converter = Mock()
        mock_converter.convert_file.side_effect = ExportError("docx", RuntimeError("boom"))
        mock_converter_class.return_value = mock_converter

        result = runner.invoke(app, ["convert", str(tmp_markup_file), "--to", "docx"])

        assert result.exit_code == 1
        mock_converter.convert_file.assert_called_once()
        call_args = mock_converter.convert_file.call_args
        assert call_args[0][0] == tmp_markup_file
        assert call_args[0][1] == "docx"

    def test_folder(self, tmp_path: Path):
        """Test converting a folder of files."""
        source = tmp_path / "src"
        source.mkdir()
        (source / "uno.md").write_text("# Uno\n\ntexto", encoding="utf-8")
        (source / "dos.txt").write_text("texto plano", encoding="utf-8")
        (source / "ignored.xyz").write_text("x")
        out_dir = tmp_path / "out"

        result = runner.invoke(app, ["convert", str(source), "--to", "html", "-o", str(out_dir)])

        assert result.exit_code == 0
        assert "2 succeeded, 0 failed" in result.stdout
        assert (out_dir / "uno.html").exists()
        assert (out_dir / "dos.html").exists()

    def test_folder_with_failure(self, tmp_path: Path):
        """Test that a failed file gives a non-zero exit code."""
        (tmp_path / "bien.md").write_text("# Bien", encoding="utf-8")
        (tmp_path / "roto.docx").write_bytes(b"not a zip")

        result = runner.invoke(
            app, ["convert", str(tmp_path), "--to", "txt", "-o", str(tmp_path / "out")]
        )

        assert result.exit_code == 1
        assert "1 succeeded, 1 failed" in result.stdout

    def test_folder_title_warning(self, tmp_path: Path):
        """Test that --title is ignored in folder mode."""
        result = runner.invoke(app, ["convert", str(tmp_path), "-t", "X"])

        assert "ignored" in result.stdout
        assert "No supported files" in result.stdout


class TestSalvageCommand:
    """Tests for the salvage command."""

    def test_writes_output(self, tmp_path: Path):
        """Test writing reconstructed markup to a file."""
        source = tmp_path / "dump.txt"
        source.write_text("TITULO\nUn texto con suficiente contenido.", encoding="utf-8")
        output = tmp_path / "out.html"

        result = runner.invoke(app, ["salvage", str(source), "-o", str(output)])

        assert result.exit_code == 0
        assert output.read_text(encoding="utf-8") == (
            "<h2>TITULO</h2><p>Un texto con suficiente contenido.</p>\n"
        )

    def test_prints_markup(self, tmp_path: Path):
        """Test printing markup when no output file is given."""
        source = tmp_path / "dump.txt"
        source.write_text("TITULO\nUn texto con suficiente contenido.", encoding="utf-8")

        result = runner.invoke(app, ["salvage", str(source)])

        assert result.exit_code == 0
        assert "<h2>TITULO</h2>" in result.stdout

    def test_garbled_text_exit_code(self, tmp_path: Path):
        """Test the no-content exit code."""
        source = tmp_path / "dump.txt"
        source.write_text("@@## $$%% ^^&& **(( 12", encoding="utf-8")

        result = runner.invoke(app, ["salvage", str(source)])

        assert result.exit_code == EXIT_NO_CONTENT
        assert "No extractable content" in result.stdout

    def test_directory_rejected(self, tmp_path: Path):
        """Test that salvage needs a file."""
        result = runner.invoke(app, ["salvage", str(tmp_path)])

        assert result.exit_code != 0
