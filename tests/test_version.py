import spotpilot


def test_version_is_exposed():
    assert isinstance(spotpilot.__version__, str)
    assert spotpilot.__version__.count(".") >= 2
