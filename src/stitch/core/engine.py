#!/usr/bin/env python3
"""
STITCH ENGINE - The File Orchestrator
-------------------------------------
The EditEngine is the only part of Stitch that touches the filesystem. It
reads a document, runs an edit script through the EditPipeline, validates
the result and writes it back atomically, keeping a backup of the original.
Every outcome, failures included, is reported as a plain dictionary.

Author: Stitch Team
Date: 2026-10-18
"""

import os
import time
import shutil
import logging
from pathlib import Path
from typing import Any, Dict, List

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from stitch.core.errors import ScriptError, StitchError
from stitch.editing.pipeline import EditPipeline
from stitch.validator.validator import DocumentValidator

logger = logging.getLogger("stitch.engine")

BACKUP_SUFFIX = '.stitch.backup'
TEMP_SUFFIX = '.stitch.tmp'
CRLF = '\r\n'


def load_script(path: Path) -> List[Dict[str, Any]]:
    """
    Reads an edit script: a YAML or JSON list of operations, or a mapping
    with an `operations` list.
    """
    try:
        data = YAML(typ='safe', pure=True).load(Path(path).read_text(encoding='utf-8-sig'))
    except (OSError, YAMLError) as e:
        raise ScriptError(f"Cannot load edit script {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get('operations')
    if not isinstance(data, list):
        raise ScriptError(f"Edit script {path} must contain a list of operations")
    return data


class EditEngine:
    """
    Principal orchestrator for file edits.
    Keeps the workspace root and the safety settings shared by every file it
    processes.
    """

    def __init__(self, workspace_path: str, backup: bool = True,
                 validate: bool = True, strict: bool = False):
        self.workspace = Path(workspace_path).resolve()
        self.backup = backup
        self.validate = validate
        self.strict = strict

        self.pipeline = EditPipeline()
        self.validator = DocumentValidator()

    def _resolve(self, relative_path: str) -> Path:
        return (self.workspace / relative_path).resolve()

    @staticmethod
    def _read(path: Path) -> str:
        # BOM-aware; newline='' so the line-ending style can be detected
        with open(path, 'r', encoding='utf-8-sig', newline='') as f:
            return f.read()

    def edit_file(self, relative_path: str, operations: List[Dict[str, Any]],
                  dry_run: bool = True) -> Dict[str, Any]:
        """
        Applies `operations` to one file. With dry_run the edited text is
        reported but nothing is written.

        Operations always see LF text; a CRLF document gets CRLF back on
        every line, edited or not.
        """
        full_path = self._resolve(relative_path)
        if not full_path.is_file():
            return self._file_error(relative_path, "FILE_NOT_FOUND", f"Path missing: {full_path}")

        try:
            original = self._read(full_path)
            newline = CRLF if CRLF in original else '\n'
            context = self.pipeline.run(original.replace(CRLF, '\n'), operations)
        except StitchError as e:
            logger.error("Edit script failed on %s: %s", relative_path, e)
            return self._file_error(relative_path, "SCRIPT_ERROR", str(e))
        except Exception as e:
            logger.error("Error processing %s: %s", relative_path, e)
            return self._file_error(relative_path, "ENGINE_ERROR", str(e))

        is_modified = context.changed
        edited = context.text.replace('\n', newline)
        valid, message = True, ""
        if self.validate and is_modified:
            valid, message = self.validator.validate_document(edited, strict=self.strict)

        result = {
            "file_path": str(relative_path),
            "success": valid,
            "status": self._derive_status(is_modified, dry_run, valid),
            "written": False,
            "backup_created": None,
            "original_content": original,
            "edited_content": edited if is_modified else None,
            "logs": list(context.logs),
            "actual_refs": dict(context.actual_refs),
            "validation_message": message,
            "timestamp": time.time(),
        }

        if not dry_run and is_modified and valid:
            self._persist(full_path, edited, result)
        return result

    def normalize_file(self, relative_path: str, dry_run: bool = True) -> Dict[str, Any]:
        """Applies only the whitespace normalizer."""
        return self.edit_file(relative_path, [{"op": "normalize"}], dry_run=dry_run)

    def check_file(self, relative_path: str) -> Dict[str, Any]:
        """Read-only validation of a file as it is on disk."""
        full_path = self._resolve(relative_path)
        if not full_path.is_file():
            return self._file_error(relative_path, "FILE_NOT_FOUND", f"Path missing: {full_path}")
        try:
            valid, message = self.validator.validate_document(self._read(full_path), strict=self.strict)
        except Exception as e:
            logger.error("Error checking %s: %s", relative_path, e)
            return self._file_error(relative_path, "ENGINE_ERROR", str(e))
        return {
            "file_path": str(relative_path),
            "success": valid,
            "status": "VALID" if valid else "INVALID",
            "validation_message": message,
            "timestamp": time.time(),
        }

    def _persist(self, full_path: Path, content: str, result: Dict[str, Any]):
        if self.backup:
            backup_path = self._create_unique_backup(full_path)
            try:
                shutil.copy2(full_path, backup_path)
                result["backup_created"] = str(backup_path.relative_to(self.workspace))
            except (OSError, ValueError) as e:
                result["backup_warning"] = f"Backup failed: {e}"

        try:
            self._atomic_write(full_path, content)
            result["written"] = True
        except IOError as e:
            result["write_error"] = str(e)
            result["success"] = False
            result["status"] = "WRITE_ERROR"

    def generate_summary(self, reports: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Counts per outcome for the final report panel."""
        if not reports:
            return {
                "total_files": 0, "success_rate": 0, "successful": 0,
                "written_to_disk": 0, "system_errors": 0, "backups_created": 0
            }

        total = len(reports)
        successful = sum(1 for r in reports if r.get('success', False))
        writes = sum(1 for r in reports if r.get('written', False))
        backups_count = sum(1 for r in reports if r.get('backup_created') is not None)
        system_errors = sum(1 for r in reports
                            if r.get('status') in ("ENGINE_ERROR", "SCRIPT_ERROR", "FILE_NOT_FOUND"))

        return {
            "total_files": total,
            "success_rate": successful / total,
            "successful": successful,
            "written_to_disk": writes,
            "backups_created": backups_count,
            "system_errors": system_errors,
            "summary_timestamp": time.strftime("%Y-%m-%d %H:%M:%S")
        }

    def _derive_status(self, modified: bool, dry: bool, valid: bool) -> str:
        if not modified:
            return "UNCHANGED"
        if not valid:
            return "INVALID"
        return "PREVIEW" if dry else "EDITED"

    def _atomic_write(self, target_path: Path, content: str):
        if not os.access(target_path.parent, os.W_OK):
            raise PermissionError(f"No write access to {target_path.parent}")
        temp_file = target_path.with_name(target_path.name + TEMP_SUFFIX)
        try:
            with open(temp_file, 'w', encoding='utf-8', newline='') as f:
                f.write(content)
            os.replace(temp_file, target_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise IOError(f"Atomic write failed: {e}") from e

    def _create_unique_backup(self, target_path: Path) -> Path:
        backup_path = target_path.with_name(target_path.name + BACKUP_SUFFIX)
        counter = 1
        while backup_path.exists():
            backup_path = target_path.with_name(f"{target_path.stem}-{counter}{target_path.suffix}{BACKUP_SUFFIX}")
            counter += 1
        return backup_path

    def _file_error(self, path: str, status: str, error: str) -> Dict[str, Any]:
        return {
            "file_path": str(path), "status": status, "error": error,
            "success": False, "written": False, "backup_created": None,
        }

