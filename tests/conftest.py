"""Pytest configuration and fixtures for the equation-input tests."""

import logging

import numpy as np
import pytest

from pdeinputs.analysis.entities import PolygonFace, PolyhedronCell, Tetrahedron
from pdeinputs.logging_config import PACKAGE_LOGGER
from pdeinputs.model.domain import DomainConfiguration


@pytest.fixture
def unit_cube():
    """Unit cube [0, 1]^3 as a polyhedral (non-simplicial) cell."""
    return PolyhedronCell.box(index=0)


@pytest.fixture
def distorted_hexahedron():
    """Convex hexahedron with no parallel faces."""
    return PolyhedronCell.hexahedron(
        [
            [0.0, 0.0, 0.0], [2.0, 0.1, 0.0], [2.2, 1.5, 0.1], [-0.1, 1.2, 0.0],
            [0.1, -0.1, 1.0], [1.9, 0.0, 1.2], [2.0, 1.4, 1.3], [0.0, 1.1, 0.9],
        ],
        index=1,
    )


@pytest.fixture
def skewed_tetrahedron():
    return Tetrahedron([[0.1, 0.2, 0.0], [1.3, 0.1, 0.2], [0.4, 1.1, 0.3], [0.3, 0.5, 1.4]], index=2)


@pytest.fixture
def unit_square_face():
    """Unit square in the plane z = 0 as a polygonal face."""
    return PolygonFace([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]], index=3)


@pytest.fixture
def warnings_log():
    """List collecting the messages sent to a warning hook."""
    return []


@pytest.fixture
def domain(warnings_log):
    """Empty domain configuration recording its warnings."""
    return DomainConfiguration(warning_hook=warnings_log.append)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def restore_package_logger():
    """Undo the handlers and level set by ``setup_logging`` during a test."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    level, handlers = logger.level, list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    for handler in handlers:
        logger.addHandler(handler)
