"""
Vocabulary Module
=================

Namespaces, SPARQL prefixes, URI bases and the predicate allowlists of
every property group the harvester reconciles. Predicates outside these
allowlists are never touched, so manually curated data on the same
resources survives a harvest.
"""

from rdflib import Namespace
from rdflib.namespace import DCTERMS, FOAF, PROV, RDF, SKOS

SCHEMA = Namespace("http://schema.org/")
VEEAKKER = Namespace("http://veeakker.be/vocabularies/shop/")
FOOD = Namespace("http://data.lirmm.fr/ontologies/food#")
DCT = DCTERMS
ADMS = Namespace("http://www.w3.org/ns/adms#")
MU = Namespace("http://mu.semte.ch/vocabularies/core/")
GR = Namespace("http://purl.org/goodrelations/v1#")
DBPEDIA = Namespace("http://dbpedia.org/resource/")
NFO = Namespace("http://www.semanticdesktop.org/ontologies/2007/03/22/nfo#")
NIE = Namespace("http://www.semanticdesktop.org/ontologies/2007/01/19/nie#")
SESSION = Namespace("http://mu.semte.ch/vocabularies/session/")

NAMESPACES: dict = {
    "rdf": RDF,
    "schema": SCHEMA,
    "veeakker": VEEAKKER,
    "food": FOOD,
    "dct": DCT,
    "adms": ADMS,
    "skos": SKOS,
    "mu": MU,
    "gr": GR,
    "foaf": FOAF,
    "dbpedia": DBPEDIA,
    "nfo": NFO,
    "nie": NIE,
    "prov": PROV,
    "session": SESSION,
}

PREFIXES = "\n".join(f"PREFIX {prefix}: <{str(ns)}>" for prefix, ns in NAMESPACES.items())

DEFAULT_GRAPH = "http://mu.semte.ch/application"

# Marks identifiers minted for Local Food Works ids
LFW_CREATOR = "https://localfoodworks.eu/"

LFW_LABEL = "http://veeakker.be/labels/lfw"
BIO_LABEL = "http://veeakker.be/labels/bio"

# Unit of the offering price, one ordered piece
OFFERING_PRICE_UNIT = "C62"

PLU_OFFSET = 1_000_000


class UriBase:
    """Bases for minted resource URIs."""

    PRODUCT = "http://veeakker.be/products/"
    IDENTIFIER = "http://data.redpencil.io/identifiers/"
    SUPPLIER = "http://veeakker.be/suppliers/"
    PRICE_SPECIFICATION = "http://veeakker.be/price-specifications/"
    QUANTITATIVE_VALUE = "http://veeakker.be/quantitative-values/"
    OFFERING = "http://veeakker.be/offerings/"
    TYPE_AND_QUANTITY = "http://veeakker.be/type-and-quantities/"
    FILE = "http://veeakker.be/files/"
    SHARE = "share://"
    JOB = "http://veeakker.be/lfw-jobs/"


# Property group allowlists, as prefixed names
BASE_INFO_PREDICATES = (
    "dct:title",
    "dct:description",
    "veeakker:hasLabel",
    "veeakker:plu",
    "veeakker:sortIndex",
    "veeakker:lfwProductCanBeOrderedByFractionOfOrderUnit",
)
PRICE_SPECIFICATION_PREDICATES = ("gr:hasUnitOfMeasurement", "gr:hasCurrencyValue")
QUANTITATIVE_VALUE_PREDICATES = ("gr:hasUnitOfMeasurement", "gr:hasValue")
TYPE_AND_QUANTITY_PREDICATES = (
    "gr:amountOfThisGood",
    "gr:hasUnitOfMeasurement",
    "gr:typeOfGood",
)
INGREDIENTS_PREDICATES = ("food:ingredientListAsText",)
ALLERGENS_PREDICATES = ("veeakker:allergensAsText",)
SUPPLIER_DETAIL_PREDICATES = ("schema:email", "dct:description")
JOB_STATUS_PREDICATES = ("adms:status",)
FILE_PREDICATES = (
    "rdf:type",
    "mu:uuid",
    "dct:source",
    "nie:dataSource",
    "nfo:fileName",
    "dct:format",
    "nfo:fileSize",
    "dbpedia:fileExtension",
    "dct:created",
)
