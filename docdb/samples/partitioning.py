"""
Partitioning sample.

Seeds people whose Address.State is the partition key, once with plain
state names and once with a random suffix appended. An equality filter on
the key targets a single partition; a prefix filter has to fan out over
all of them. Item counts and request charges are printed for both.
"""

import random
import uuid
from typing import Any, Dict, List, Optional

from pymongo.collection import Collection

from .console import SampleConsole

COLLECTION_NAME = "partitioning-samples"
SUFFIX_COLLECTION_NAME = "partitioning-samples-suffix"

PARTITION_KEY = "Address.State"
TARGET_STATE = "Minas Gerais"

FIRST_NAMES = ["Ana", "Bruno", "Carla", "Diego", "Elisa", "Fábio", "Gabriela", "Heitor", "Isabela", "João"]
LAST_NAMES = ["Silva", "Souza", "Oliveira", "Santos", "Pereira", "Lima", "Costa", "Ferreira"]
CITIES = ["Belo Horizonte", "Uberlândia", "São Paulo", "Campinas", "Salvador", "Curitiba", "Recife"]
STATES = ["Minas Gerais", "São Paulo", "Bahia", "Paraná", "Pernambuco", "Rio de Janeiro"]

PAGE_SIZE = 100


def make_people(count: int, add_suffix: bool, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """Generate people; with add_suffix every state gets a "-N" tail."""
    rng = rng or random.Random()
    people = []
    for _ in range(count):
        state = rng.choice(STATES)
        if add_suffix:
            state = f"{state}-{rng.randint(1, 999)}"
        people.append({
            "_id": str(uuid.UUID(int=rng.getrandbits(128))),
            "Name": f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
            "Address": {"City": rng.choice(CITIES), "State": state},
        })
    return people


def seed(console: SampleConsole, name: str, people: List[Dict[str, Any]]) -> Collection:
    collection = console.fresh_collection(name)
    collection.create_index(PARTITION_KEY, name="partition_key")
    if people:
        collection.insert_many(people)
    console.log_and_wait(f"Seeded {len(people)} people into {name}. Request charge of the last batch: ")
    return collection


def retrieve_with_partition_key(console: SampleConsole, collection: Collection) -> int:
    items = list(collection.find({PARTITION_KEY: TARGET_STATE}).limit(PAGE_SIZE))
    charge = console.request_charge()
    console.narrate(
        f"RetrieveDocumentsWithPartitionKey >> Item Count: {len(items)} - Request Charge: {charge}"
    )
    return len(items)


def retrieve_without_partition_key(console: SampleConsole, collection: Collection) -> int:
    prefix = {"$regex": f"^{TARGET_STATE}"}
    items = list(collection.find({PARTITION_KEY: prefix}).limit(PAGE_SIZE))
    charge = console.request_charge()
    console.narrate(
        f"RetrieveDocumentsWithoutPartitionKey >> Item Count: {len(items)} - Request Charge: {charge}"
    )
    return len(items)


def run(console: SampleConsole, people: int = 500, seed_value: Optional[int] = None) -> Dict[str, int]:
    rng = random.Random(seed_value)

    exact = seed(console, COLLECTION_NAME, make_people(people, add_suffix=False, rng=rng))
    suffixed = seed(console, SUFFIX_COLLECTION_NAME, make_people(people, add_suffix=True, rng=rng))

    results = {
        "with_partition_key": retrieve_with_partition_key(console, exact),
        "without_partition_key": retrieve_without_partition_key(console, suffixed),
    }
    console.wait()
    return results
