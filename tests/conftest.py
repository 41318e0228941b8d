import sys
from pathlib import Path

import pytest

# Ensure project root on sys.path
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from api.gateway import Gateway  # noqa: E402
from api.schemas import load_schemas  # noqa: E402
from api.store import MemoryStore  # noqa: E402


DELIVERY_HEADER = ['id', 'date', 'sku', 'lot', 'qty']


@pytest.fixture(autouse=True)
def _no_schema_override(monkeypatch):
    monkeypatch.delenv("TABLE_SCHEMAS", raising=False)


@pytest.fixture()
def store():
    return MemoryStore({
        'SKUs': [['id', 'name', 'month', 'forecast']],
        'Deliveries': [list(DELIVERY_HEADER)],
    })


@pytest.fixture()
def gateway(store):
    return Gateway(store, load_schemas())
