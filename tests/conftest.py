from __future__ import annotations

import pytest

from builders import person, rel

from relgraph.models import RelationshipType
from relgraph.store import DataStore


@pytest.fixture()
def family_store() -> DataStore:
    # Two households joined by a marriage, plus a friend and a loner.
    #
    #   Gran --parent--> Dad --spouse-- Mum <--parent-- Nana
    #                     |
    #                   parent
    #                     v
    #                    Kid  --friend-- Pal        Solo
    people = [
        person("gran", "Gran", "Smith"),
        person("dad", "Dad", "Smith"),
        person("mum", "Mum", "Jones"),
        person("nana", "Nana", "Jones"),
        person("kid", "Kid", "Smith"),
        person("pal", "Pal", "Brown"),
        person("solo", "Solo"),
    ]
    rels = [
        rel("r1", "gran", "dad", RelationshipType.PARENT),
        rel("r2", "dad", "mum", RelationshipType.SPOUSE),
        rel("r3", "nana", "mum", RelationshipType.PARENT),
        rel("r4", "dad", "kid", RelationshipType.PARENT),
        rel("r5", "kid", "pal", RelationshipType.FRIEND),
    ]
    return DataStore(people=people, relationships=rels)
