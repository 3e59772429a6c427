"""
Tests for the command-line interface.
"""

import json

import pytest

from conftest import make_image
from imgsearch.cli import create_parser, main
from imgsearch.database import Database
from imgsearch.exceptions import HashError
from imgsearch.fingerprint import FingerprintProvider


@pytest.fixture(autouse=True)
def isolated_config(temp_dir, monkeypatch):
    """Point the user config at an empty temp folder."""
    from imgsearch.user_config import get_user_config

    monkeypatch.setenv('IMGSEARCH_CONFIG_DIR', str(temp_dir / "config"))
    get_user_config().reload()
    yield
    get_user_config().reload()


class TestParser:

    def test_index_defaults(self):
        args = create_parser().parse_args(['index', 'photos'])
        assert args.command == 'index'
        assert str(args.database) == 'database.txt'
        assert args.algorithm == 'phash'

    def test_sampled_options(self):
        args = create_parser().parse_args(
            ['index-sampled', 'laion.json', '-n', '100', '-j', '8', '--timeout', '2.5']
        )
        assert args.sample_size == 100
        assert args.max_in_flight == 8
        assert args.timeout == 2.5

    def test_env_overrides_default(self, monkeypatch):
        monkeypatch.setenv('IMGSEARCH_MAX_IN_FLIGHT', '16')
        args = create_parser().parse_args(['index-sampled', 'laion.json'])
        assert args.max_in_flight == 16

    def test_command_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])


class TestCommands:

    def test_index_then_search(self, image_dir, database_path, capsys):
        assert main(['index', str(image_dir), '-d', str(database_path)]) == 0
        assert len(Database.load_file(database_path)) == 3

        assert main(['search', str(image_dir / 'a.png'), '-d', str(database_path), '-l', '1']) == 0
        out = capsys.readouterr().out.strip().splitlines()
        assert len(out) == 1
        assert out[0].split()[-1] == 'a.png'

    def test_index_missing_directory(self, temp_dir, database_path):
        assert main(['index', str(temp_dir / 'nope'), '-d', str(database_path)]) == 1

    def test_search_missing_database(self, temp_dir, image_dir):
        assert main(['search', str(image_dir / 'a.png'), '-d', str(temp_dir / 'nope.txt')]) == 1

    def test_search_unreadable_query(self, image_dir, database_path):
        database_path.write_text("a.png 1\n")
        assert main(['search', str(image_dir / 'corrupt.jpg'), '-d', str(database_path)]) == 1

    def test_search_hash_failure(self, image_dir, database_path, monkeypatch, capsys):
        database_path.write_text("a.png 1\n")

        def broken_hash(self, image):
            raise HashError("hash function crashed")

        monkeypatch.setattr(FingerprintProvider, 'hash', broken_hash)
        assert main(['search', str(image_dir / 'a.png'), '-d', str(database_path)]) == 1
        assert capsys.readouterr().out == ""

    def test_config_init(self, temp_dir, capsys):
        assert main(['config', '--init']) == 0
        config_file = temp_dir / "config" / "config.json"
        assert json.loads(config_file.read_text())['max_in_flight'] == 64

        assert main(['config']) == 0
        assert 'max_in_flight: 64' in capsys.readouterr().out
