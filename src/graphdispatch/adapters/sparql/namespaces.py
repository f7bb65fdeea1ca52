"""Prefixes available to every query, including ownership path patterns."""

from __future__ import annotations

from typing import Final

PREFIXES: Final[dict[str, str]] = {
    "besluit": "http://data.vlaanderen.be/ns/besluit#",
    "adms": "http://www.w3.org/ns/adms#",
    "skos": "http://www.w3.org/2004/02/skos/core#",
    "reorg": "http://www.w3.org/ns/regorg#",
    "lblodgeneriek": "https://data.lblod.info/vocabularies/generiek/",
    "org": "http://www.w3.org/ns/org#",
    "generiek": "https://data.vlaanderen.be/ns/generiek#",
    "ere": "http://data.lblod.info/vocabularies/erediensten/",
    "organisatie": "https://data.vlaanderen.be/ns/organisatie#",
    "mu": "http://mu.semte.ch/vocabularies/core/",
    "euvoc": "http://publications.europa.eu/ontology/euvoc#",
    "prov": "http://www.w3.org/ns/prov#",
    "schema": "http://schema.org/",
    "locn": "http://www.w3.org/ns/locn#",
    "foaf": "http://xmlns.com/foaf/0.1/",
    "ext": "http://mu.semte.ch/vocabularies/ext/",
    "dcterms": "http://purl.org/dc/terms/",
    "dct": "http://purl.org/dc/terms/",
    "geo": "http://www.opengis.net/ont/geosparql#",
    "adres": "https://data.vlaanderen.be/ns/adres#",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
    "fv": "http://data.lblod.info/vocabularies/FeitelijkeVerenigingen/",
    "ns": "https://data.lblod.info/ns/",
    "vereniging": "https://data.vlaanderen.be/ns/FeitelijkeVerenigingen#",
    "pav": "http://purl.org/pav/",
    "code": "http://data.vlaanderen.be/id/concept/",
    "person": "http://www.w3.org/ns/person#",
    "oslc": "http://open-services.net/ns/core#",
    "xsd": "http://www.w3.org/2001/XMLSchema#",
}

SPARQL_PREFIXES: Final[str] = "\n".join(
    f"PREFIX {prefix}: <{namespace}>" for prefix, namespace in PREFIXES.items()
)


def expand(prefix: str, local_name: str) -> str:
    return f"{PREFIXES[prefix]}{local_name}"
