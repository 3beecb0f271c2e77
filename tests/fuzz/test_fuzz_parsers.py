import random
import string
from dbtk.PARSERS.compose_parser import ComposeParser
from dbtk.EXTRACTORS.credentials_extractor import extract_credentials
from dbtk.errors import DBTestkitError


def random_string(length):
    return ''.join(random.choice(string.printable) for _ in range(length))


def test_fuzz_compose_parser():
    parser = ComposeParser()
    for _ in range(100):
        content = random_string(random.randint(0, 1000))
        try:
            # Random junk must fail with a ParseError, never an IndexError or AttributeError.
            extract_credentials(parser.parse_from_string(content))
        except DBTestkitError:
            pass


def test_fuzz_port_mappings():
    for _ in range(100):
        port = random_string(random.randint(0, 20)).replace('\n', ' ')
        content = (
            "services:\n"
            "  db-test-customer:\n"
            f"    ports: [{port!r}]\n"
            "  db-test-internal: {}\n"
        )
        try:
            document = ComposeParser().parse_from_string(content)
        except DBTestkitError:
            continue
        creds = extract_credentials(document)
        assert creds.internal_port == '6666'
        assert ':' not in creds.customer_port
