import base64

import pytest

from kycfill.errors import FileReferenceNotFoundError, StorageError, VaultDecryptionError, VaultNotFoundError
from kycfill.profile import IdentityProfile
from kycfill.storage.db import VaultRecordRow
from kycfill.vault.crypto import NONCE_LENGTH, VaultCipher
from kycfill.vault.files import UploadedFile, new_file_id
from kycfill.vault.manager import VAULT_RECORD_KEY


def sample_profile(**overrides) -> IdentityProfile:
    values = {
        "firstName": "Ana",
        "lastName": "Lima",
        "email": "a@x.com",
        "phoneCountryCode": "+44",
        "country": "United Kingdom",
        "dob": "1990-01-01",
        "passport": "passport_1700000000000",
    }
    values.update(overrides)
    return IdentityProfile.from_payload(values)


def test_round_trip_returns_equal_profile(cipher):
    profile = sample_profile(city="Zürich")

    record = cipher.encrypt(profile, "pw1")

    assert cipher.decrypt(record, "pw1") == profile


def test_each_encryption_uses_a_fresh_nonce(cipher):
    profile = sample_profile()

    first = base64.b64decode(cipher.encrypt(profile, "pw1"))
    second = base64.b64decode(cipher.encrypt(profile, "pw1"))

    assert first[:NONCE_LENGTH] != second[:NONCE_LENGTH]


def test_wrong_passphrase_fails(cipher):
    record = cipher.encrypt(sample_profile(), "pw1")

    with pytest.raises(VaultDecryptionError):
        cipher.decrypt(record, "pw2")


@pytest.mark.parametrize(
    "record",
    [
        "",
        base64.b64encode(b"short").decode(),
        "not base64 at all!",
        base64.b64encode(b"\x00" * 40).decode(),
    ],
)
def test_corrupt_records_fail_with_the_same_message(cipher, record):
    with pytest.raises(VaultDecryptionError) as excinfo:
        cipher.decrypt(record, "pw1")

    assert str(excinfo.value) == VaultDecryptionError.MESSAGE


def test_tampered_ciphertext_is_rejected(cipher):
    raw = bytearray(base64.b64decode(cipher.encrypt(sample_profile(), "pw1")))
    raw[-1] ^= 0x01

    with pytest.raises(VaultDecryptionError) as excinfo:
        cipher.decrypt(base64.b64encode(bytes(raw)).decode(), "pw1")

    assert str(excinfo.value) == VaultDecryptionError.MESSAGE


def test_key_derivation_depends_on_salt():
    assert VaultCipher(iterations=1_000).derive_key("pw1") != VaultCipher(salt=b"other", iterations=1_000).derive_key("pw1")


def test_new_file_id_uses_field_and_timestamp():
    assert new_file_id("passport", 1700000000123) == "passport_1700000000123"


@pytest.mark.asyncio
async def test_file_store_round_trip(file_store):
    upload = UploadedFile(filename="passport.png", payload=b"\x89PNG", mime_type="image/png")

    file_id = await file_store.store_upload("passport", upload)
    reference = await file_store.retrieve(file_id)

    assert file_id.startswith("passport_")
    assert reference.payload == b"\x89PNG"
    assert reference.filename == "passport.png"
    assert reference.mime_type == "image/png"


@pytest.mark.asyncio
async def test_retrieve_unknown_id_raises(file_store):
    with pytest.raises(FileReferenceNotFoundError):
        await file_store.retrieve("selfie_1")


@pytest.mark.asyncio
async def test_save_collects_unreferenced_files(vault, file_store):
    for file_id in ("a", "b", "c"):
        await file_store.store(file_id, UploadedFile(filename=f"{file_id}.bin", payload=file_id.encode()))

    result = await vault.save(IdentityProfile(first_name="Ana", passport="b"), "pw1")

    assert await file_store.list_ids() == ["b"]
    assert sorted(result.deleted_files) == ["a", "c"]


@pytest.mark.asyncio
async def test_save_overwrites_single_record(vault, database):
    await vault.save(IdentityProfile(first_name="Ana"), "pw1")
    await vault.save(IdentityProfile(first_name="Bea"), "pw2")

    assert (await vault.load("pw2")).first_name == "Bea"
    with pytest.raises(VaultDecryptionError):
        await vault.load("pw1")

    with database.session() as session:
        assert [row.key for row in session.query(VaultRecordRow).all()] == [VAULT_RECORD_KEY]


@pytest.mark.asyncio
async def test_load_without_record_raises(vault):
    assert not await vault.has_record()
    with pytest.raises(VaultNotFoundError):
        await vault.load("pw1")


@pytest.mark.asyncio
async def test_storage_failures_surface_as_storage_error(vault, database):
    VaultRecordRow.__table__.drop(database.engine)

    with pytest.raises(StorageError) as excinfo:
        await vault.save(IdentityProfile(first_name="Ana"), "pw1")
    assert excinfo.value.data == {"operation": "record.put"}

    with pytest.raises(StorageError):
        await vault.load("pw1")


def test_redacted_masks_values():
    view = IdentityProfile(first_name="Ana", email="a@x.com").redacted()

    assert view["firstName"] == "A*a"
    assert view["email"] == "a*****m"
    assert view["city"] == ""
