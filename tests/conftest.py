"""Pytest configuration and shared fixtures for filtered_table tests."""

from typing import Any, Dict, List
from unittest.mock import patch

import pytest

from filtered_table import (
    DeviceTypeInput,
    DropdownInput,
    FilterDefinition,
    FilterRule,
    FreeTextInput,
    MultiselectInput,
    SliderInput,
    YearMonthInput,
)

TEST_ORGANIZATION_NAME = "Test organization name"


class MockSessionState(dict):
    """Mock Streamlit session_state that behaves like a dict."""

    pass


@pytest.fixture
def mock_streamlit():
    """
    Mock Streamlit's session_state for testing the rendering bridge.

    This fixture patches st.session_state to allow testing without
    running a full Streamlit server.
    """
    mock_session_state = MockSessionState()

    with patch("streamlit.session_state", mock_session_state):
        yield mock_session_state


def search_text(record: Dict[str, Any]) -> List[str]:
    """Searchable text of a device: facility name and organization name."""
    return [record.get("facilityName"), record["organization"]["name"]]


@pytest.fixture
def device_records() -> List[Dict[str, Any]]:
    """Two producing devices, as shown in the device table."""
    return [
        {
            "id": 0,
            "facilityName": "Wuthering Heights facility",
            "deviceType": "Solar;Photovoltaic;Roof mounted",
            "country": "Thailand",
            "capacityInW": 9877000,
            "commissioningDate": "2019-03-15",
            "organization": {"name": TEST_ORGANIZATION_NAME},
        },
        {
            "id": 1,
            "facilityName": "Biomass Energy Facility",
            "deviceType": "Gaseous;Agricultural gas",
            "address": (
                "95 Moo 7, Sa Si Mum Sub-district, Kamphaeng Saen District, "
                "Nakhon Province 73140"
            ),
            "country": "Thailand",
            "capacityInW": 736123,
            "region": "Central",
            "province": "Nakhon Pathom",
            "commissioningDate": "2020-11-02",
            "organization": {"name": TEST_ORGANIZATION_NAME},
        },
    ]


@pytest.fixture
def many_records() -> List[Dict[str, Any]]:
    """Sixty devices across three countries and two fuel types."""
    countries = ["Thailand", "Germany", "Chile"]
    fuels = ["Solar;Photovoltaic", "Wind;Onshore"]
    return [
        {
            "id": i,
            "facilityName": f"Facility {i:02d}",
            "deviceType": fuels[i % 2],
            "country": countries[i % 3],
            "capacityInW": i * 1000,
            "commissioningDate": f"2020-{(i % 12) + 1:02d}-01",
            "organization": {"name": "Org A" if i < 30 else "Org B"},
        }
        for i in range(60)
    ]


@pytest.fixture
def search_definition() -> FilterDefinition:
    return FilterDefinition(
        field=search_text,
        label="Search by facility name and organization",
        input=FreeTextInput(),
        search=True,
    )


@pytest.fixture
def device_definitions(search_definition) -> List[FilterDefinition]:
    """Search plus one definition of every standard input kind."""
    return [
        search_definition,
        FilterDefinition(
            field="deviceType",
            label="Device type",
            input=DeviceTypeInput(
                available_options=[
                    {"label": "Solar", "value": "Solar"},
                    {"label": "Gaseous", "value": "Gaseous"},
                    {"label": "Wind", "value": "Wind"},
                ]
            ),
        ),
        FilterDefinition(
            field="deviceType",
            label="Fuel",
            input=MultiselectInput(
                available_options=["Solar", "Gaseous", "Wind"],
                separator=";",
            ),
        ),
        FilterDefinition(
            field="country",
            label="Country",
            input=DropdownInput(available_options=["Thailand", "Germany", "Chile"]),
        ),
        FilterDefinition(
            field="capacityInW",
            label="Capacity",
            input=SliderInput(min=0, max=10_000_000, filter_rule=FilterRule.FROM),
        ),
        FilterDefinition(
            field="commissioningDate",
            label="Commissioning date",
            input=YearMonthInput(),
        ),
    ]
