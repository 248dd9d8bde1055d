import os
import stat
import sys

import pytest
import yaml

from otptray.errors import LoadError, SaveError
from otptray.io.config_utils import YamlConfigFile

from conftest import make_draft


def test_missing_file_loads_empty(tmp_path):
    assert YamlConfigFile(tmp_path / "otptray.yaml").load_entries() == []


def test_save_then_load(tmp_path):
    config = YamlConfigFile(tmp_path / "nested" / "otptray.yaml")
    drafts = [make_draft("github"), make_draft("aws", hash_fn="sha512", digits=8, step=60)]
    config.save_entries(drafts)
    assert config.load_entries() == drafts


def test_saved_file_layout(tmp_path):
    path = tmp_path / "otptray.yaml"
    YamlConfigFile(path).save_entries([make_draft("github")])
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data == {
        "entries": [
            {"name": "github", "step": 30, "secret_hash": "JBSWY3DPEHPK3PXP", "hash_fn": "sha1", "digit_count": 6}
        ]
    }


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
def test_saved_file_is_private(tmp_path):
    path = tmp_path / "otptray.yaml"
    YamlConfigFile(path).save_entries([make_draft()])
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_load_ignores_unknown_keys(tmp_path):
    path = tmp_path / "otptray.yaml"
    path.write_text(
        "entries:\n"
        "  - name: github\n"
        "    step: 30\n"
        "    secret_hash: JBSWY3DPEHPK3PXP\n"
        "    hash_fn: sha1\n"
        "    digit_count: 6\n"
        "    colour: blue\n",
        encoding="utf-8",
    )
    assert YamlConfigFile(path).load_entries() == [make_draft("github")]


@pytest.mark.parametrize(
    "content",
    [
        "entries: [\n",
        "- just\n- a list\n",
        "other: 1\n",
        "entries: nope\n",
        "entries:\n  - name: github\n",
        "entries:\n  - plain string\n",
    ],
)
def test_bad_shapes_raise_load_error(tmp_path, content):
    path = tmp_path / "otptray.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(LoadError):
        YamlConfigFile(path).load_entries()


def test_empty_file_loads_empty(tmp_path):
    path = tmp_path / "otptray.yaml"
    path.write_text("", encoding="utf-8")
    assert YamlConfigFile(path).load_entries() == []


def test_unwritable_location_raises_save_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(SaveError):
        YamlConfigFile(blocker / "otptray.yaml").save_entries([make_draft()])
