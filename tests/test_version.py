from hsclient import version


def test_user_agent_matches_version():
    ua = version.make_user_agent(1, 3, 7)
    assert version.USER_AGENT == ua
    assert ua.endswith("3hs/" + version.VERSION)
    assert version.VVERSION == "v" + version.VERSION


def test_make_user_agent_prefix():
    ua = version.make_user_agent("2", "0", "11")
    assert ua.startswith("hShop (3DS/CTR/KTR; ARMv6) 3hs/")
    assert ua.endswith("/2.0.11")