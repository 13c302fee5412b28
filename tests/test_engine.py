import pytest

from stitch.core.engine import EditEngine, load_script
from stitch.core.errors import ScriptError

DOC = (
    "schema_version: '1.0'\n"
    "name: Demo\n"
    "\n"
    "components:\n"
    "  - ref: api\n"
    "    name: API\n"
    "\n"
    "  - ref: db\n"
    "    name: DB\n"
)

RENAME_NAME = [{"op": "update_field", "section": "components", "ref": "api",
                "field": "name", "value": "Service: API"}]


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "model.yaml").write_text(DOC, encoding="utf-8")
    return tmp_path


def test_dry_run_reports_without_writing(workspace):
    """A preview carries the edited text but leaves the file alone."""
    engine = EditEngine(str(workspace))
    report = engine.edit_file("model.yaml", RENAME_NAME, dry_run=True)

    assert report["status"] == "PREVIEW"
    assert report["success"] is True
    assert report["written"] is False
    assert '    name: "Service: API"\n' in report["edited_content"]
    assert report["logs"] == ["update_field(section='components', ref='api', field='name'): changed"]
    assert (workspace / "model.yaml").read_text(encoding="utf-8") == DOC


def test_write_creates_backup(workspace):
    engine = EditEngine(str(workspace))
    report = engine.edit_file("model.yaml", RENAME_NAME, dry_run=False)

    assert report["status"] == "EDITED"
    assert report["written"] is True
    assert report["backup_created"] == "model.yaml.stitch.backup"
    assert (workspace / "model.yaml.stitch.backup").read_text(encoding="utf-8") == DOC
    assert '    name: "Service: API"\n' in (workspace / "model.yaml").read_text(encoding="utf-8")
    assert not (workspace / "model.yaml.stitch.tmp").exists()

    # A second write never overwrites the first backup
    second = engine.edit_file("model.yaml", [{"op": "update_top_level_field", "field": "name",
                                              "value": "Renamed"}], dry_run=False)
    assert second["backup_created"] == "model-1.yaml.stitch.backup"


def test_no_backup_option(workspace):
    engine = EditEngine(str(workspace), backup=False)
    report = engine.edit_file("model.yaml", RENAME_NAME, dry_run=False)
    assert report["written"] is True
    assert report["backup_created"] is None
    assert not (workspace / "model.yaml.stitch.backup").exists()


def test_unchanged_file_is_not_written(workspace):
    report = EditEngine(str(workspace)).edit_file("model.yaml", [{"op": "normalize"}], dry_run=False)
    assert report["status"] == "UNCHANGED"
    assert report["success"] is True
    assert report["written"] is False
    assert report["edited_content"] is None


def test_invalid_result_blocks_the_write(workspace):
    """A rename that produces duplicate refs fails validation and is never written."""
    operations = [{"op": "rename_ref", "old": "api", "new": "db", "ensure_unique": False}]
    report = EditEngine(str(workspace)).edit_file("model.yaml", operations, dry_run=False)

    assert report["status"] == "INVALID"
    assert report["success"] is False
    assert report["written"] is False
    assert "Duplicate ref 'db'" in report["validation_message"]
    assert (workspace / "model.yaml").read_text(encoding="utf-8") == DOC


def test_errors_become_reports(workspace):
    engine = EditEngine(str(workspace))

    missing = engine.edit_file("nope.yaml", RENAME_NAME)
    assert missing["status"] == "FILE_NOT_FOUND"
    assert missing["success"] is False

    failed = engine.edit_file("model.yaml", [{"op": "rename_ref", "kind": "component",
                                              "old": "ghost", "new": "x"}])
    assert failed["status"] == "SCRIPT_ERROR"
    assert "ghost" in failed["error"]


def test_check_file(workspace):
    engine = EditEngine(str(workspace))
    assert engine.check_file("model.yaml")["status"] == "VALID"

    (workspace / "broken.yaml").write_text("name: Demo\n", encoding="utf-8")
    report = engine.check_file("broken.yaml")
    assert report["status"] == "INVALID"
    assert "schema_version" in report["validation_message"]


def test_generate_summary(workspace):
    engine = EditEngine(str(workspace))
    reports = [
        engine.edit_file("model.yaml", RENAME_NAME, dry_run=False),
        engine.edit_file("nope.yaml", RENAME_NAME),
    ]
    summary = engine.generate_summary(reports)
    assert summary["total_files"] == 2
    assert summary["successful"] == 1
    assert summary["written_to_disk"] == 1
    assert summary["backups_created"] == 1
    assert summary["system_errors"] == 1
    assert summary["success_rate"] == 0.5


def test_load_script(tmp_path):
    listing = tmp_path / "ops.yaml"
    listing.write_text("- op: normalize\n", encoding="utf-8")
    assert load_script(listing) == [{"op": "normalize"}]

    wrapped = tmp_path / "ops.json"
    wrapped.write_text('{"operations": [{"op": "regenerate_refs"}]}', encoding="utf-8")
    assert load_script(wrapped) == [{"op": "regenerate_refs"}]

    bad = tmp_path / "bad.yaml"
    bad.write_text("op: normalize\n", encoding="utf-8")
    with pytest.raises(ScriptError):
        load_script(bad)
    with pytest.raises(ScriptError):
        load_script(tmp_path / "missing.yaml")


def test_normalize_file(workspace):
    (workspace / "messy.yaml").write_text(DOC.replace("\n\n", "\n\n\n\n"), encoding="utf-8")
    engine = EditEngine(str(workspace))
    report = engine.normalize_file("messy.yaml", dry_run=False)
    assert report["status"] == "EDITED"
    assert (workspace / "messy.yaml").read_text(encoding="utf-8") == DOC


def test_crlf_document_stays_crlf(workspace):
    """Edited and untouched lines alike are written back with CRLF."""
    path = workspace / "model.yaml"
    path.write_bytes(DOC.replace("\n", "\r\n").encode("utf-8"))
    report = EditEngine(str(workspace)).edit_file("model.yaml", RENAME_NAME, dry_run=False)

    assert report["written"] is True
    expected = DOC.replace("    name: API\n", '    name: "Service: API"\n')
    assert path.read_bytes() == expected.replace("\n", "\r\n").encode("utf-8")
