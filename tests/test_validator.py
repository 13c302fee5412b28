from stitch.validator.validator import DocumentValidator

VALID = (
    "schema_version: '1.0'\n"
    "name: Demo\n"
    "\n"
    "components:\n"
    "  - ref: api\n"
    "    name: API\n"
    "\n"
    "  - ref: db\n"
    "    name: DB\n"
    "\n"
    "data_flows:\n"
    "  - ref: api->db\n"
    "    source: api\n"
    "    destination: db\n"
)


def test_valid_document_passes():
    assert DocumentValidator().validate_document(VALID) == (
        True, "Document passes structural integrity check.")


def test_empty_sections_are_fine():
    doc = "schema_version: '1.0'\nname: Demo\ncomponents: []\n"
    assert DocumentValidator().validate_document(doc)[0] is True


def test_parse_errors_and_non_mapping_roots():
    valid, message = DocumentValidator().validate_document("name: [\n")
    assert not valid
    assert message.startswith("Parse Error")

    valid, message = DocumentValidator().validate_document("- a\n- b\n")
    assert not valid
    assert "not a mapping" in message


def test_required_fields():
    doc = VALID.replace("name: Demo\n", "")
    assert DocumentValidator().validate_document(doc) == (
        False, "Validation Failed: Missing required top-level field 'name'.")


def test_section_shape_errors():
    validator = DocumentValidator()
    base = "schema_version: 1\nname: x\n"

    valid, message = validator.validate_document(base + "components: nope\n")
    assert not valid and message.startswith("Logic Error")

    valid, message = validator.validate_document(base + "components:\n  - just a string\n")
    assert not valid and message.startswith("Logic Error")

    valid, message = validator.validate_document(base + "components:\n  - name: no ref\n")
    assert not valid and message.startswith("Structural Error")


def test_duplicate_refs_across_sections():
    doc = VALID + "\nassets:\n  - ref: api\n    name: Clash\n"
    valid, message = DocumentValidator().validate_document(doc)
    assert not valid
    assert "Duplicate ref 'api'" in message


def test_dangling_references_warn_or_fail():
    """Lenient mode warns about a dangling endpoint; strict mode rejects it."""
    doc = VALID.replace("    destination: db\n", "    destination: ghost\n")
    validator = DocumentValidator()

    valid, message = validator.validate_document(doc)
    assert valid
    assert message == "Warning: Dangling references: data_flows[0].destination -> ghost"

    valid, message = validator.validate_document(doc, strict=True)
    assert not valid
    assert message.startswith("Strict Mode Violation")


def test_find_dangling_refs_in_lists():
    doc = {
        "components": [{"ref": "api"}],
        "threats": [{"ref": "T01", "affected_components": ["api", "gone"]}],
    }
    assert DocumentValidator().find_dangling_refs(doc) == [
        "threats[0].affected_components -> gone"]
