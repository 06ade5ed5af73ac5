"""Validates generated site files for syntactic plausibility."""

import json
import re

DEFAULT_EXPORT = re.compile(r"^\s*export\s+default\b", re.MULTILINE)


def validate_json(files: dict[str, str]) -> dict[str, str]:
    """Check JSON files for format errors.

    Returns dict of {filename: error_message} for files with errors.
    """
    errors = {}
    for filename, content in files.items():
        if not filename.endswith(".json"):
            continue
        try:
            json.loads(content)
        except ValueError as e:
            errors[filename] = f"JSONDecodeError: {e}"
    return errors


def validate_components(files: dict[str, str]) -> dict[str, str]:
    """Check that every component module has a default export."""
    errors = {}
    for filename, content in files.items():
        if not filename.endswith(".tsx"):
            continue
        if not content.strip():
            errors[filename] = "Empty component"
        elif filename != "src/main.tsx" and not DEFAULT_EXPORT.search(content):
            errors[filename] = "Missing default export"
    return errors


def validate_files(files: dict[str, str]) -> dict[str, str]:
    """Run all validations on generated files.

    Returns dict of {filename: error_message} for all files with errors.
    """
    errors = {}
    errors.update(validate_json(files))
    errors.update(validate_components(files))
    return errors
