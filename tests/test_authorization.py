import pytest

from premium_payments.errors import NotFoundOrUnauthorized, Unauthenticated
from premium_payments.services.authorization import extract_bearer

from conftest import LISTING_ID, OTHER_TOKEN, OWNER_ID, OWNER_TOKEN


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic abc", "token-only"])
def test_extract_bearer_rejects_malformed(header):
    with pytest.raises(Unauthenticated):
        extract_bearer(header)


def test_extract_bearer():
    assert extract_bearer("Bearer abc.def") == "abc.def"
    assert extract_bearer("bearer  abc ") == "abc"


async def test_owner_is_authorized(authorization):
    user_id, listing = await authorization.authorize_owner(f"Bearer {OWNER_TOKEN}", LISTING_ID)

    assert user_id == OWNER_ID
    assert listing['id'] == LISTING_ID


async def test_other_user_gets_not_found(authorization):
    with pytest.raises(NotFoundOrUnauthorized):
        await authorization.authorize_owner(f"Bearer {OTHER_TOKEN}", LISTING_ID)


async def test_missing_listing_gets_same_error(authorization):
    with pytest.raises(NotFoundOrUnauthorized) as excinfo:
        await authorization.authorize_owner(f"Bearer {OWNER_TOKEN}", "00000000-0000-0000-0000-000000000000")

    assert excinfo.value.message == NotFoundOrUnauthorized.message


async def test_invalid_credential(authorization, identity):
    with pytest.raises(Unauthenticated):
        await authorization.authorize_owner("Bearer nope", LISTING_ID)

    identity.resolve_user.assert_awaited_once_with("nope")
