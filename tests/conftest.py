import json

import pytest

from medscribe.catalog import CatalogLoader
from medscribe.adapters.diseases import DiseaseTracker
from medscribe.adapters.submissions import SubmissionStore
from medscribe.adapters.instructions import InstructionsSource
from medscribe.gateway import Gateway
from medscribe.telemetry import Telemetry


DISEASES = ["Dengue Fever", "Malaria", "Cholera"]


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "catalog" / "diseases.json"
    path.parent.mkdir()
    path.write_text(json.dumps(DISEASES), encoding="utf-8")
    return path


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def instructions_path(tmp_path):
    path = tmp_path / "idea.md"
    path.write_text("# নির্দেশনা\n\nWrite 450-500 words.\n", encoding="utf-8")
    return path


@pytest.fixture
def telemetry():
    telemetry = Telemetry()
    yield telemetry
    telemetry.shutdown()


@pytest.fixture
def gateway(catalog_path, data_dir, instructions_path, telemetry):
    tracker = DiseaseTracker(CatalogLoader(str(catalog_path)))
    tracker.load()
    return Gateway(
        tracker=tracker,
        submissions=SubmissionStore(str(data_dir)),
        instructions=InstructionsSource(str(instructions_path)),
        telemetry=telemetry
    )
