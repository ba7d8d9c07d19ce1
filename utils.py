import requests
import json
import logging
import os
import re
from collections import namedtuple
from datetime import datetime
from pydantic import ValidationError
from dotenv import load_dotenv
from models import UpstreamDocument

logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

load_dotenv()  # Load environment variables from .env file

DEMAND_URL = os.getenv(
    'DEMAND_URL',
    'https://www.hydroquebec.com/data/documents-donnees/donnees-ouvertes/json/demande.json'
)
PRODUCTION_URL = os.getenv(
    'PRODUCTION_URL',
    'https://www.hydroquebec.com/data/documents-donnees/donnees-ouvertes/json/production.json'
)

SOURCE_TIMESTAMP_FORMAT = '%m/%d/%Y %H:%M:%S'
# strptime alone accepts single-digit fields, the feed format does not
SOURCE_TIMESTAMP_PATTERN = re.compile(r'^\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2}$')


class FeedError(Exception):
    """Base class for failures while retrieving or flattening a feed."""


class UpstreamFetchError(FeedError):
    def __init__(self, status_code):
        self.status_code = status_code
        super().__init__(f"Failed to retrieve data. Status code: {status_code}")


class ParseError(FeedError):
    pass


class DateParseError(FeedError):
    pass


# fields maps output record key -> key inside an observation's "valeurs"
FeedPolicy = namedtuple('FeedPolicy', ['kind', 'primary_field', 'fields'])

DEMAND_POLICY = FeedPolicy(
    kind='demand',
    primary_field='demandeTotal',
    fields=(
        ('demand', 'demandeTotal'),
    ),
)

PRODUCTION_POLICY = FeedPolicy(
    kind='production',
    primary_field='total',
    fields=(
        ('total', 'total'),
        ('hydraulic', 'hydraulique'),
        ('wind', 'eolien'),
        ('other', 'autres'),
        ('solar', 'solaire'),
        ('thermal', 'thermique'),
    ),
)

FEEDS = {
    'demand': (DEMAND_URL, DEMAND_POLICY),
    'production': (PRODUCTION_URL, PRODUCTION_POLICY),
}


def fetch_data_from_url(url):
    """
    Performs a single GET request against the feed URL and returns the body as text.
    Raises UpstreamFetchError when the feed answers with a non-success status.
    """
    try:
        response = requests.get(url)
    except requests.exceptions.RequestException as e:
        logger.error(f"Request to {url} failed: {str(e)}")
        raise

    if not 200 <= response.status_code < 300:
        logger.error(f"Feed {url} answered with status {response.status_code}")
        raise UpstreamFetchError(response.status_code)

    logger.info(f"Fetched {len(response.text)} characters from {url}")
    return response.text


def parse_document(json_text):
    """Parses the raw feed text into an UpstreamDocument."""
    try:
        payload = json.loads(json_text)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid JSON document: {str(e)}") from e

    if not isinstance(payload, dict):
        raise ParseError("Invalid JSON document: expected an object at the top level")

    try:
        return UpstreamDocument.model_validate(payload)
    except ValidationError as e:
        problems = '; '.join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ParseError(f"Unexpected document structure: {problems}") from e


def build_metadata(document):
    return {
        'dateStart': document.dateStart,
        'dateEnd': document.dateEnd,
        'recentHour': document.recentHour,
        'indexDonneePlusRecent': document.indexDonneePlusRecent or 0,
        'nbDateAvecData': document.nbDateAvecData or 0,
    }


def split_timestamp(value):
    """
    Splits a feed timestamp ("MM/dd/yyyy HH:mm:ss") into separate date and time strings.
    No other layout is accepted.
    """
    if not SOURCE_TIMESTAMP_PATTERN.match(value):
        raise DateParseError(f"String '{value}' was not recognized as a valid DateTime.")
    try:
        parsed = datetime.strptime(value, SOURCE_TIMESTAMP_FORMAT)
    except ValueError as e:
        raise DateParseError(f"String '{value}' was not recognized as a valid DateTime.") from e
    return parsed.strftime('%m/%d/%Y'), parsed.strftime('%H:%M:%S')


def flatten_feed(json_text, policy):
    """
    Flattens a feed document into a list of records: the metadata record first,
    then one record per observation that has both a date and a primary value,
    in source order. A malformed date fails the whole document.
    """
    document = parse_document(json_text)
    flattened = [build_metadata(document)]

    skipped = 0
    for detail in document.details:
        primary = detail.valeurs.get(policy.primary_field)
        if not detail.date or not primary:
            skipped += 1
            continue

        date, time = split_timestamp(detail.date)
        record = {'date': date, 'time': time}
        for output_key, source_key in policy.fields:
            record[output_key] = detail.valeurs.get(source_key)
        flattened.append(record)

    if skipped:
        logger.debug(f"Skipped {skipped} {policy.kind} entries without a date or {policy.primary_field}")
    logger.info(f"Flattened {len(flattened) - 1} {policy.kind} observations")
    return flattened


def flatten_demand_data(json_text):
    return flatten_feed(json_text, DEMAND_POLICY)


def flatten_production_data(json_text):
    return flatten_feed(json_text, PRODUCTION_POLICY)


def retrieve_flattened(kind):
    """Main function to fetch one feed and flatten it for the dashboard"""
    url, policy = FEEDS[kind]
    raw_text = fetch_data_from_url(url)
    return flatten_feed(raw_text, policy)
