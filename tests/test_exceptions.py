from feedactivity.exceptions import ActivityCodecError, DecodeError, EncodeError


def test_codec_error_to_dict():
    err = ActivityCodecError(code="test_error", message="Something broke")
    d = err.to_dict()
    assert d["error"]["code"] == "test_error"
    assert d["error"]["message"] == "Something broke"
    assert "details" not in d["error"]


def test_codec_error_with_details():
    err = ActivityCodecError(code="x", message="y", details={"field": "data"})
    assert err.to_dict()["error"]["details"]["field"] == "data"
    assert str(err) == "y"


def test_encode_error_defaults():
    err = EncodeError()
    assert err.code == "encode_failed"
    assert isinstance(err, ActivityCodecError)


def test_decode_error_defaults():
    err = DecodeError()
    assert err.code == "decode_failed"
    assert err.details == {}
