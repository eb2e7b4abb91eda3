"""Trigger interface: "save profile" and "run autofill"."""
from __future__ import annotations

import logging
from typing import Mapping, Optional, Union

from .agent.classifier import SemanticClassifier
from .agent.llm import ClassificationService, LLMContext
from .config import Settings, get_settings
from .errors import FileReferenceNotFoundError, KycFillError, MissingPassphraseError
from .fill.dropdown import DropdownResolver
from .fill.executor import FillExecutor
from .fill.next_action import NextActionSelector
from .page.dom import DomPage
from .pipeline import AutofillPipeline, MutationSource
from .profile import DOCUMENT_SLOTS, TEXT_SLOTS, IdentityProfile
from .storage.db import Database
from .storage.records import SqlBlobStore, SqlRecordStore
from .vault.files import FileReferenceStore, UploadedFile
from .vault.manager import ProfileVault, SaveResult

logger = logging.getLogger(__name__)

DocumentInput = Union[UploadedFile, str]
"""A new upload, or the id of a file that is already stored."""


def _require_passphrase(passphrase: Optional[str], purpose: str) -> str:
    if not passphrase:
        raise MissingPassphraseError(f"Please enter the encryption passphrase for {purpose}.")
    return passphrase


class KycAutofillService:
    """Entry point used by the CLI (or any other front end)."""

    def __init__(
        self,
        vault: ProfileVault,
        llm: ClassificationService,
        *,
        settings: Settings | None = None,
    ) -> None:
        self.vault = vault
        self.llm = llm
        self.settings = settings or get_settings()

    async def save_profile(
        self,
        fields: Mapping[str, Optional[str]],
        documents: Mapping[str, Optional[DocumentInput]],
        passphrase: Optional[str],
    ) -> SaveResult:
        """Store uploads, encrypt the profile and reclaim orphaned files."""

        passphrase = _require_passphrase(passphrase, "saving")

        profile = IdentityProfile()
        for slot, value in fields.items():
            if slot not in TEXT_SLOTS:
                raise KycFillError(f"Unknown profile field {slot!r}", data={"field": slot})
            if value is not None and value.strip():
                profile.set(slot, value.strip())

        for slot, document in documents.items():
            if slot not in DOCUMENT_SLOTS:
                raise KycFillError(f"Unknown document field {slot!r}", data={"field": slot})
            if document is None:
                continue
            if isinstance(document, UploadedFile):
                profile.set(slot, await self.vault.files.store_upload(slot, document))
            else:
                if not await self.vault.files.exists(document):
                    raise FileReferenceNotFoundError(document)
                profile.set(slot, document)

        result = await self.vault.save(profile, passphrase)
        logger.info("Profile saved", extra={"documents": len(list(profile.document_references()))})
        return result

    async def load_profile(self, passphrase: Optional[str]) -> IdentityProfile:
        return await self.vault.load(_require_passphrase(passphrase, "loading"))

    async def prepare_profile(self, passphrase: Optional[str]) -> IdentityProfile:
        """Decrypt the profile and, if enabled, correct its phone country code."""

        profile = await self.vault.load(_require_passphrase(passphrase, "autofill"))
        if self.settings.correct_phone_code and profile.country and profile.phone_country_code:
            corrected = await self.llm.correct_phone_country_code(profile.country, profile.phone_country_code)
            if corrected != profile.phone_country_code:
                logger.info("Phone country code corrected", extra={"country": profile.country})
            profile.phone_country_code = corrected
        return profile

    def build_pipeline(self, page: DomPage, *, observer: Optional[MutationSource] = None) -> AutofillPipeline:
        resolver = DropdownResolver(
            page,
            max_attempts=self.settings.dropdown_max_attempts,
            settle_ms=self.settings.dropdown_settle_ms,
            backoff_ms=self.settings.dropdown_backoff_ms,
            threshold=self.settings.fuzzy_threshold,
        )
        return AutofillPipeline(
            page,
            SemanticClassifier(self.llm),
            FillExecutor(self.llm, self.vault.files, resolver),
            NextActionSelector(page, self.llm),
            observer=observer,
        )

    async def run_autofill(
        self,
        passphrase: Optional[str],
        page: DomPage,
        *,
        observer: Optional[MutationSource] = None,
    ) -> AutofillPipeline:
        """Decrypt the profile and start the fill pipeline on ``page``.

        The returned pipeline keeps reacting to ``observer`` until a scan comes
        back empty or :meth:`AutofillPipeline.stop` is called.
        """

        profile = await self.prepare_profile(passphrase)
        pipeline = self.build_pipeline(page, observer=observer)
        await pipeline.start(profile)
        return pipeline


def build_service(settings: Settings | None = None, *, database: Database | None = None) -> KycAutofillService:
    """Wire the SQL-backed vault and the shared language-model service."""

    settings = settings or get_settings()
    database = database or Database(settings.resolved_database_url())
    database.init_db()
    files = FileReferenceStore(SqlBlobStore(database))
    vault = ProfileVault(SqlRecordStore(database), files)
    llm = ClassificationService(LLMContext.from_settings(settings))
    return KycAutofillService(vault, llm, settings=settings)


__all__ = ["DocumentInput", "KycAutofillService", "build_service"]
