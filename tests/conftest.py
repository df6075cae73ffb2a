"""Shared fixtures: sample handler sources are read as text, never imported."""

from pathlib import Path

import pytest

from body_scanner import RouteInfo, SynthesisConfig

SAMPLES_DIR = Path(__file__).resolve().parent.parent / "test_samples"
FLASK_APP = SAMPLES_DIR / "flask_app.py"
FORM_REQUEST_APP = SAMPLES_DIR / "form_request_app.py"


@pytest.fixture
def flask_source():
    return FLASK_APP.read_text(encoding="utf-8")


@pytest.fixture
def form_request_source():
    return FORM_REQUEST_APP.read_text(encoding="utf-8")


@pytest.fixture
def config():
    return SynthesisConfig()


@pytest.fixture
def flask_route(flask_source):
    def make(handler, http_method=None):
        return RouteInfo.from_source(flask_source, handler, http_method=http_method, file_path=str(FLASK_APP))
    return make


@pytest.fixture
def controller_route(form_request_source):
    def make(handler, http_method="POST"):
        return RouteInfo.from_source(
            form_request_source,
            f"UserApiController.{handler}",
            http_method=http_method,
            file_path=str(FORM_REQUEST_APP),
        )
    return make
