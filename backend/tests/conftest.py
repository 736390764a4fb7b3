import logging

import pytest
from mmdb_writer import MMDBWriter
from netaddr import IPSet

from geo_fakes import MUNICH_IP, NO_CITY_IP


MUNICH_RECORD = {
    "country": {"iso_code": "DE", "names": {"en": "Germany"}},
    "subdivisions": [{"iso_code": "BY", "names": {"en": "Bavaria"}}],
    "city": {"names": {"en": "Munich"}},
    "location": {"latitude": 48.1371, "longitude": 11.5754},
}
NO_CITY_RECORD = {
    "country": {"iso_code": "US", "names": {"en": "United States"}},
}


def _network(ip):
    return ip.rsplit(".", 1)[0] + ".0/24"


def write_mmdb(path, database_type, records):
    writer = MMDBWriter(
        ip_version=4,
        database_type=database_type,
        languages=["en"],
        description="geoheaders test fixture",
    )
    for network, record in records.items():
        writer.insert_network(IPSet([network]), record)
    writer.to_db_file(str(path))
    return str(path)


def _golden_records():
    return {_network(MUNICH_IP): MUNICH_RECORD, _network(NO_CITY_IP): NO_CITY_RECORD}


@pytest.fixture(scope="session")
def mmdb_dir(tmp_path_factory):
    return tmp_path_factory.mktemp("mmdb")


@pytest.fixture(scope="session")
def city_db(mmdb_dir):
    return write_mmdb(mmdb_dir / "GeoLite2-City.mmdb", "GeoLite2-City", _golden_records())


@pytest.fixture(scope="session")
def country_db(mmdb_dir):
    records = {
        network: {"country": record["country"]}
        for network, record in _golden_records().items()
    }
    return write_mmdb(mmdb_dir / "GeoLite2-Country.mmdb", "GeoLite2-Country", records)


@pytest.fixture(scope="session")
def enterprise_db(mmdb_dir):
    return write_mmdb(
        mmdb_dir / "GeoIP2-Enterprise.mmdb", "GeoIP2-Enterprise", _golden_records()
    )


@pytest.fixture(scope="session")
def asn_db(mmdb_dir):
    records = {_network(MUNICH_IP): {"autonomous_system_number": 3320}}
    # Named like a City database to make sure the file name is not trusted.
    return write_mmdb(mmdb_dir / "asn-City.mmdb", "GeoLite2-ASN", records)


@pytest.fixture
def geo_caplog(caplog):
    # create_app() gives the package logger its own handler and stops
    # propagation, so attach the capture handler directly.
    logger = logging.getLogger("geoheaders")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="geoheaders")
    try:
        yield caplog
    finally:
        logger.removeHandler(caplog.handler)
