"""
Tests for wiring the service handle from settings.
"""

import pytest

from peitho.services.orchestration.modes import ImageMode
from peitho.services.service import PeithoService


def test_from_backends(mock_settings, mock_engine, mock_orchestrator):
    mock_settings.image_mode = "delivery"
    mock_settings.image_dir = "/var/lib/peitho"

    service = PeithoService.from_backends(mock_settings, mock_engine, mock_orchestrator)

    assert service.containers.engine is mock_engine
    assert service.containers.orchestrator is mock_orchestrator
    assert service.containers.image_mode == ImageMode.DELIVERY
    assert service.containers.readiness_attempts == 3
    assert service.images.image_mode == ImageMode.DELIVERY
    assert service.images.image_dir == "/var/lib/peitho"
    assert service.sweeper.orchestrator is mock_orchestrator
    assert service.sweeper.enable is False
    assert service.sweeper.prefixes == ["dev-", "chaincode-"]


def test_invalid_image_mode(mock_settings, mock_engine, mock_orchestrator):
    mock_settings.image_mode = "carrier-pigeon"

    with pytest.raises(ValueError):
        PeithoService.from_backends(mock_settings, mock_engine, mock_orchestrator)
