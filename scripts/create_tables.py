#!/usr/bin/env python3
"""
Create the tables of the demo catalog (base + translation tables)
Used for a first run against DATABASE_URL
"""
import logging
import sys
from pathlib import Path

from sqlalchemy import BigInteger, String, Text

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from orm_i18n import I18N, Field, ModelHost
from orm_i18n.core.config import settings
from orm_i18n.core.database import engine
from orm_i18n.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


def define_catalog(host: ModelHost):
    """Demo models: products have translated names, categories do not"""
    product = host.define(
        "product",
        {
            "id": Field(BigInteger, primary_key=True),
            "name": Field(String(200), translatable=True),
            "description": Field(Text, translatable=True),
            "reference": Field(String(50), unique=True),
        },
        timestamps=True,
        paranoid=True,
    )
    category = host.define(
        "category",
        {
            "id": Field(BigInteger, primary_key=True),
            "label": Field(String(200)),
        },
    )
    return product, category


def create_tables():
    """Create every table of the demo catalog"""
    setup_logging()
    host = ModelHost()
    i18n = I18N.from_settings(host, settings)
    i18n.init()
    define_catalog(host)

    try:
        host.create_all(engine)
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        sys.exit(1)

    logger.info("Tables created:")
    for table in host.metadata.sorted_tables:
        logger.info(f"   - {table.name}")


if __name__ == "__main__":
    create_tables()
