"""Tests for attributedBody text recovery."""

import plistlib

from passage.messages.attributed_body import decode_attributed_body

_PREFIX = (
    b"\x04\x0bstreamtyped\x81\xe8\x03\x84\x01@\x84\x84\x84\x12NSAttributedString\x00"
    b"\x84\x84\x08NSObject\x00\x85\x92\x84\x84\x84\x08NSString\x01\x94\x84\x01+"
)
_SUFFIX = b"\x86\x84\x02iI\x01\x0c\x92\x84\x84\x84\x0cNSDictionary\x00"


def _typedstream(payload: bytes, length_field: bytes) -> bytes:
    return _PREFIX + length_field + payload + _SUFFIX


def test_typedstream_short_string():
    text = "Want to grab lunch?"
    blob = _typedstream(text.encode(), bytes([len(text)]))
    assert decode_attributed_body(blob) == text


def test_typedstream_unicode():
    encoded = "café ☕️ at 3?".encode("utf-8")
    blob = _typedstream(encoded, bytes([len(encoded)]))
    assert decode_attributed_body(blob) == "café ☕️ at 3?"


def test_typedstream_extended_one_byte_length():
    text = "x" * 200
    blob = _typedstream(text.encode(), b"\x81" + bytes([200]) + b"\x00")
    assert decode_attributed_body(blob) == text


def test_typedstream_extended_two_byte_length():
    text = "long message " * 40
    encoded = text.encode()
    blob = _typedstream(encoded, b"\x82" + len(encoded).to_bytes(2, "big"))
    assert decode_attributed_body(blob) == text.strip()


def test_typedstream_unsupported_length_width():
    blob = _typedstream(b"hello", b"\x83\x00\x00\x05")
    assert decode_attributed_body(blob) is None


def test_typedstream_truncated_payload():
    blob = _PREFIX + bytes([50]) + b"too short"
    assert decode_attributed_body(blob) is None


def test_typedstream_without_type_tag():
    blob = b"\x04\x0bstreamtypedNSString\x01\x94\x84\x01" + bytes([5]) + b"hello" + _SUFFIX
    assert decode_attributed_body(blob) == "hello"


def test_typedstream_strips_trailing_garbage():
    payload = b"ok then \x01\x02\n"
    blob = _typedstream(payload, bytes([len(payload)]))
    assert decode_attributed_body(blob) == "ok then"


def test_control_characters_only_rejected():
    payload = b"\x01\x02\x03\x04"
    blob = _typedstream(payload, bytes([len(payload)]))
    assert decode_attributed_body(blob) is None


def test_bplist_direct_key():
    blob = plistlib.dumps({"NSString": "from bplist"}, fmt=plistlib.FMT_BINARY)
    assert decode_attributed_body(blob) == "from bplist"


def test_bplist_alternate_key():
    blob = plistlib.dumps({"NS.string": "alternate key"}, fmt=plistlib.FMT_BINARY)
    assert decode_attributed_body(blob) == "alternate key"


def test_bplist_nested_attributed_string():
    blob = plistlib.dumps(
        {"NSAttributedString": {"NS.string": "nested text"}},
        fmt=plistlib.FMT_BINARY,
    )
    assert decode_attributed_body(blob) == "nested text"


def test_bplist_keyed_archive():
    archive = {
        "$archiver": "NSKeyedArchiver",
        "$version": 100000,
        "$top": {"root": plistlib.UID(1)},
        "$objects": [
            "$null",
            {"NSString": plistlib.UID(2), "$class": plistlib.UID(3)},
            {"NS.string": "keyed archive text", "$class": plistlib.UID(4)},
            {"$classname": "NSAttributedString", "$classes": ["NSAttributedString"]},
            {"$classname": "NSMutableString", "$classes": ["NSMutableString"]},
        ],
    }
    blob = plistlib.dumps(archive, fmt=plistlib.FMT_BINARY)
    assert decode_attributed_body(blob) == "keyed archive text"


def test_bplist_without_known_keys():
    blob = plistlib.dumps({"something": "else"}, fmt=plistlib.FMT_BINARY)
    assert decode_attributed_body(blob) is None


def test_corrupt_bplist_falls_back_to_scan(caplog):
    blob = b"bplist00" + b"\xff" * 8 + b"NSString\x01\x94\x84\x01+" + bytes([4]) + b"yo!!"
    with caplog.at_level("DEBUG", logger="passage.messages.attributed_body"):
        assert decode_attributed_body(blob) == "yo!!"
    failures = [r for r in caplog.records if "bplist parse failed" in r.getMessage()]
    assert failures
    assert not failures[0].args


def test_short_or_empty_input():
    assert decode_attributed_body(None) is None
    assert decode_attributed_body(b"") is None
    assert decode_attributed_body(b"NSStrin") is None


def test_plain_bytes_without_markers():
    assert decode_attributed_body(b"just some bytes with no structure at all") is None
