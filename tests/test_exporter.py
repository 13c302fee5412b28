from stitch.editing.exporter import DocumentExporter
from stitch.editing.normalizer import normalize_whitespace

MODEL = {
    "components": [
        {
            "x": 10.6,
            "assets": ["A01", "A02"],
            "name": "API",
            "ref": "api",
            "description": "first line\nsecond line",
        },
    ],
    "name": "Demo",
    "assets": [{"name": "Data", "ref": "A01"}],
    "schema_version": "1.0",
}


def test_model_to_yaml_layout():
    """Preferred key order, ref first, inline scalar lists, rounded positions."""
    text = DocumentExporter().model_to_yaml(MODEL)
    lines = text.splitlines()

    assert lines[0].startswith("schema_version:")
    assert lines[1] == "name: Demo"
    assert lines[2] == "components:"
    assert lines[3] == "  - ref: api"
    assert lines[4] == "    name: API"
    assert "    x: 11" in lines
    assert "    assets: [A01, A02]" in lines
    assert "\n\nassets:\n  - ref: A01\n    name: Data\n" in text


def test_multiline_strings_use_literal_style():
    text = DocumentExporter().model_to_yaml(MODEL)
    assert "    description: |" in text
    assert "      second line" in text


def test_output_is_already_normalized_and_loadable():
    exporter = DocumentExporter()
    text = exporter.model_to_yaml(MODEL)
    assert normalize_whitespace(text) == text

    model = exporter.load(text)
    assert model["components"][0]["x"] == 11
    assert model["components"][0]["description"].startswith("first line\nsecond line")
    assert model["assets"][0]["ref"] == "A01"
