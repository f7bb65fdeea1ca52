"""Ownership path table: how each resource type leads to its association.

Every path is a SPARQL group graph pattern in which ``?subject`` is bound to
the staged subject and ``?association`` ends up bound to the owning
association. The SPARQL ownership lookup appends the pattern from association
to partition token. Use full IRIs for ``type``; prefixed names inside the
patterns resolve against ``graphdispatch.adapters.sparql.namespaces``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from graphdispatch.domain.ownership import OwnershipPath

from .errors import InvalidOwnershipPathsError

if TYPE_CHECKING:
    from collections.abc import Sequence

_FV = "https://data.vlaanderen.be/ns/FeitelijkeVerenigingen#FeitelijkeVereniging"
_PERSON = "http://www.w3.org/ns/person#Person"
_SITE = "http://www.w3.org/ns/org#Site"
_CONTACT_POINT = "http://schema.org/ContactPoint"

DEFAULT_OWNERSHIP_PATHS: tuple[OwnershipPath, ...] = (
    OwnershipPath(
        name="vereniging",
        type=_FV,
        path=f"""
        ?subject a <{_FV}> .
        BIND(?subject AS ?association)
        """,
        allowed_in_multiple_orgs=False,
    ),
    OwnershipPath(
        name="vertegenwoordiger",
        type=_PERSON,
        path=f"""
        ?association a <{_FV}> ;
          <https://data.lblod.info/ns/vertegenwoordigers> ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="primary site",
        type=_SITE,
        path=f"""
        ?association a <{_FV}> ;
          <http://www.w3.org/ns/org#hasPrimarySite> ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="sites",
        type=_SITE,
        path=f"""
        ?association a <{_FV}> ;
          <http://www.w3.org/ns/org#hasSite> ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="audience",
        type="http://data.lblod.info/vocabularies/FeitelijkeVerenigingen/Doelgroep",
        path=f"""
        ?association a <{_FV}> ;
          <http://data.lblod.info/vocabularies/FeitelijkeVerenigingen/doelgroep> ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="activity",
        type="http://www.w3.org/2004/02/skos/core#Concept",
        path=f"""
        ?association a <{_FV}> ;
          <http://www.w3.org/ns/regorg#orgActivity> ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="site type",
        type="http://data.vlaanderen.be/id/concept/TypeVestiging",
        path=f"""
        ?site a <{_SITE}> ;
          <http://data.lblod.info/vocabularies/erediensten/vestigingstype> ?subject .
        ?association a <{_FV}> .
        ?association ?p ?site .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="address",
        type="http://www.w3.org/ns/locn#Address",
        path=f"""
        ?site a <{_SITE}> ;
          <https://data.vlaanderen.be/ns/organisatie#bestaatUit> ?subject .
        ?association a <{_FV}> .
        ?association ?p ?site .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="contact point",
        type=_CONTACT_POINT,
        path=f"""
        ?association a <{_FV}> ;
          <http://schema.org/contactPoint> ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="member contact point",
        type=_CONTACT_POINT,
        path=f"""
        ?association a <{_FV}> ;
          org:hasMembership ?membership .
        ?membership a org:Membership ;
          mu:uuid ?membershipUuid ;
          org:member ?person .
        ?person schema:contactPoint ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="site address",
        type=_CONTACT_POINT,
        path=f"""
        ?site a <{_SITE}> ;
          <http://schema.org/siteAddress> ?subject .
        ?association a <{_FV}> .
        ?association ?p ?site .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="identifier",
        type="http://www.w3.org/ns/adms#Identifier",
        path=f"""
        ?association a <{_FV}> ;
          <http://www.w3.org/ns/adms#identifier> ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="structured identifier",
        type="https://data.vlaanderen.be/ns/generiek#GestructureerdeIdentificator",
        path=f"""
        ?subject a <https://data.vlaanderen.be/ns/generiek#GestructureerdeIdentificator> .
        ?identifier a <http://www.w3.org/ns/adms#Identifier> ;
          <https://data.vlaanderen.be/ns/generiek#gestructureerdeIdentificator> ?subject .
        ?association a <{_FV}> ;
          <http://www.w3.org/ns/adms#identifier> ?identifier .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="membership",
        type="http://www.w3.org/ns/org#Membership",
        path=f"""
        ?association a <{_FV}> ;
          <http://www.w3.org/ns/org#hasMembership> ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="member",
        type=_PERSON,
        path=f"""
        ?association a <{_FV}> ;
          <http://www.w3.org/ns/org#hasMembership> ?membership .
        ?membership org:member ?subject .
        """,
        allowed_in_multiple_orgs=True,
    ),
    OwnershipPath(
        name="person contact",
        type=_PERSON,
        path=f"""
        ?subject a <{_CONTACT_POINT}> .
        ?site a <{_SITE}> ;
          <http://www.w3.org/ns/org#siteAddress> ?subject .
        ?person a <{_PERSON}> ;
          <http://www.w3.org/ns/org#basedAt> ?site .
        ?member a <http://www.w3.org/ns/org#Membership> ;
          <http://www.w3.org/ns/org#member> ?person ;
          <http://www.w3.org/ns/org#organization> ?association .
        """,
        allowed_in_multiple_orgs=True,
    ),
)


class OwnershipPathModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    type: str = Field(min_length=1)
    path: str = Field(alias="pathToAssociation", min_length=1)
    allowed_in_multiple_orgs: bool = Field(default=False, alias="allowedInMultipleOrgs")
    name: str | None = None

    def to_path(self) -> OwnershipPath:
        return OwnershipPath(
            type=self.type,
            path=self.path,
            allowed_in_multiple_orgs=self.allowed_in_multiple_orgs,
            name=self.name,
        )


_PATH_TABLE = TypeAdapter(list[OwnershipPathModel])


def parse_ownership_paths(payload: object) -> tuple[OwnershipPath, ...]:
    """Validate a decoded JSON path table."""

    try:
        models = _PATH_TABLE.validate_python(payload)
    except ValidationError as exc:
        raise InvalidOwnershipPathsError(f"Invalid ownership path table: {exc}") from exc
    return tuple(model.to_path() for model in models)


def load_ownership_paths(path: str | Path | None = None) -> Sequence[OwnershipPath]:
    """Return the table from a JSON file, or the built-in table when ``path`` is None."""

    if path is None:
        return DEFAULT_OWNERSHIP_PATHS
    file_path = Path(path).expanduser()
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidOwnershipPathsError(f"Cannot read ownership paths from {file_path}") from exc
    return parse_ownership_paths(payload)
