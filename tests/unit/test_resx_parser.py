from locale_lint.resx_parser import decode_entities, parse_resx

RESX_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<root>
  <resheader name="resmimetype">
    <value>text/microsoft-resx</value>
  </resheader>
{body}
</root>
"""


def _data(name, value):
    return f'  <data name="{name}" xml:space="preserve">\n    <value>{value}</value>\n  </data>'


def _parse(body):
    return {entry.key: entry.value for entry in parse_resx(RESX_TEMPLATE.format(body=body), 'fr-FR')}


def test_data_entries_are_extracted():
    body = "\n".join([_data("Save", "Enregistrer"), _data("Cancel", "Annuler")])

    assert _parse(body) == {"Save": "Enregistrer", "Cancel": "Annuler"}


def test_resheader_is_not_an_entry():
    assert _parse("") == {}


def test_entities_are_decoded():
    body = _data("Html", "&lt;b&gt;Bold&lt;/b&gt; &amp; &quot;quoted&quot; &apos;single&apos;")

    assert _parse(body) == {"Html": "<b>Bold</b> & \"quoted\" 'single'"}


def test_ampersand_is_decoded_last():
    assert decode_entities("&amp;lt;") == "&lt;"


def test_internal_newlines_collapse_to_a_space():
    body = '  <data name="Multi">\n    <value>First line\r\nSecond line\n\nThird</value>\n  </data>'

    assert _parse(body) == {"Multi": "First line Second line Third"}


def test_missing_or_blank_value_skips_entry():
    body = "\n".join([
        '  <data name="NoValue">\n    <comment>Only a comment</comment>\n  </data>',
        _data("Blank", "   "),
        _data("Kept", "Value"),
    ])

    assert _parse(body) == {"Kept": "Value"}


def test_round_trip_of_escaped_values():
    values = {"Quote": 'He said "stop"', "Backslash": "C:\\Users\\me", "Amp": "Fish & Chips"}
    body = "\n".join(
        _data(name, value.replace("&", "&amp;").replace("<", "&lt;").replace('"', "&quot;"))
        for name, value in values.items()
    )

    assert _parse(body) == values
