"""Save the identity profile into the encrypted vault."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import click
from rich.table import Table

from ...service import DocumentInput
from ...vault.files import UploadedFile
from ...vault.manager import SaveResult
from ..context import CliState, console, pass_state, run_async

# option name -> profile slot
TEXT_OPTIONS: Dict[str, str] = {
    "first_name": "firstName",
    "last_name": "lastName",
    "email": "email",
    "phone_country_code": "phoneCountryCode",
    "phone_number": "phoneNumber",
    "address_line_1": "firstAddressLine",
    "address_line_2": "secondAddressLine",
    "city": "city",
    "postcode": "postcode",
    "country": "country",
    "dob": "dob",
}

DOCUMENT_OPTIONS: Dict[str, str] = {
    "passport": "passport",
    "id_front": "idFront",
    "id_back": "idBack",
    "selfie": "selfie",
}

_document_path = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.command(name="save")
@click.option("--first-name")
@click.option("--last-name")
@click.option("--email")
@click.option("--phone-country-code")
@click.option("--phone-number")
@click.option("--address-line-1")
@click.option("--address-line-2")
@click.option("--city")
@click.option("--postcode")
@click.option("--country")
@click.option("--dob", help="Date of birth")
@click.option("--passport", type=_document_path, help="Passport scan")
@click.option("--id-front", type=_document_path, help="Front of ID card")
@click.option("--id-back", type=_document_path, help="Back of ID card")
@click.option("--selfie", type=_document_path, help="Selfie photo")
@click.option("--keep-documents", is_flag=True, help="Keep stored documents that are not replaced")
@click.option(
    "--passphrase",
    prompt="Encryption passphrase",
    hide_input=True,
    confirmation_prompt=True,
    envvar="KYCFILL_PASSPHRASE",
)
@pass_state
def save_command(state: CliState, keep_documents: bool, passphrase: str, **values: Optional[object]):
    """
    Encrypt and store your identity details.

    Every save replaces the previous profile. Documents not referenced by the
    new profile are deleted unless --keep-documents is given.
    """
    fields = {slot: values.get(option) for option, slot in TEXT_OPTIONS.items()}
    documents: Dict[str, Optional[DocumentInput]] = {}
    for option, slot in DOCUMENT_OPTIONS.items():
        path = values.get(option)
        documents[slot] = UploadedFile.from_path(path) if path else None  # type: ignore[arg-type]

    result = run_async(_save(state, fields, documents, passphrase, keep_documents))
    _display_result(result)


async def _save(
    state: CliState,
    fields: Dict[str, Optional[str]],
    documents: Dict[str, Optional[DocumentInput]],
    passphrase: str,
    keep_documents: bool,
) -> SaveResult:
    service = state.service()
    if keep_documents and await service.vault.has_record():
        current = await service.load_profile(passphrase)
        for slot, document in documents.items():
            if document is None and current.get(slot):
                documents[slot] = current.get(slot)
    return await service.save_profile(fields, documents, passphrase)


def _display_result(result: SaveResult) -> None:
    console.print("[green]✓[/green] KYC details and documents saved!")
    if result.deleted_files:
        table = Table(title="Reclaimed documents", border_style="yellow")
        table.add_column("File reference", style="yellow")
        for file_id in result.deleted_files:
            table.add_row(file_id)
        console.print(table)
