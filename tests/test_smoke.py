import client


EXPECTED_EXPORTS = (
    "create_client",
    "create_session",
)


def test_import_client() -> None:
    for name in EXPECTED_EXPORTS:
        assert hasattr(client, name)
