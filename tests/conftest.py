import pytest

from factories import SIGNER_KEY
from royaltyclaims.settlement.signing import LocalAccountSigner


@pytest.fixture()
def signer() -> LocalAccountSigner:
    return LocalAccountSigner.from_key(SIGNER_KEY)
