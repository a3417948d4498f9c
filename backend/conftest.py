import copy

import pytest

from infradiagram.compiler import build_diagram

NETWORK_CONFIG = {
    "variable": {
        "region": {"type": "string", "default": "europe-west1"},
    },
    "resource": {
        "net": {
            "vpc": {"region": "${var.region}"},
        },
        "subnet": {
            "s": {
                "network": "${net.vpc.id}",
                "region": "${var.region}",
            },
        },
    },
    "output": {
        "subnet_id": {"value": "${subnet.s.id}"},
    },
}


@pytest.fixture
def network_config():
    return copy.deepcopy(NETWORK_CONFIG)


@pytest.fixture
def network_graph(network_config):
    return build_diagram(network_config)
