"""Tests for the TableViewController state machine."""

import pandas as pd
import polars as pl
import pytest

from filtered_table import (
    DropdownInput,
    FilterDefinition,
    FilterRule,
    IdentityNotFoundError,
    SliderInput,
    TableViewController,
    ViewState,
)


@pytest.fixture
def controller(device_definitions, device_records):
    return TableViewController(device_definitions, device_records, page_size=10)


@pytest.fixture
def paged_controller(device_definitions, many_records):
    return TableViewController(device_definitions, many_records, page_size=10)


def ids(view):
    return [record["id"] for record in view.page.items]


class TestLifecycle:
    """Tests for the uninitialized and ready states."""

    def test_uninitialized_shows_empty_page(self, device_records):
        """Test that a controller without definitions shows page 1 of 1, empty."""
        controller = TableViewController(records=device_records, page_size=10)

        view = controller.get_view()

        assert view.state is ViewState.UNINITIALIZED
        assert view.page.items == ()
        assert view.page_count == 1
        assert view.filters == ()

    def test_definitions_make_it_ready(self, device_definitions, device_records):
        """Test that the first definitions show the filtered records."""
        controller = TableViewController(records=device_records, page_size=10)

        controller.on_definitions_changed(device_definitions)

        view = controller.get_view()
        assert view.state is ViewState.READY
        assert view.total_count == 2
        assert len(view.filters) == len(device_definitions)

    @pytest.mark.parametrize("definitions", [None, []])
    def test_empty_definitions_keep_it_uninitialized(self, definitions, device_records):
        """Test that no definitions leave the controller uninitialized."""
        controller = TableViewController(records=device_records)

        controller.on_definitions_changed(definitions)

        assert controller.state is ViewState.UNINITIALIZED

    def test_page_requests_are_ignored_while_uninitialized(self, many_records):
        """Test that paging does nothing before definitions arrive."""
        controller = TableViewController(records=many_records, page_size=10)
        views = []
        controller.subscribe(views.append)

        controller.on_page_requested(3)

        assert views == []
        assert controller.get_view().page.page_index == 1

    def test_default_page_size_from_environment(self, monkeypatch):
        """Test that the page size falls back to FILTERED_TABLE_PAGE_SIZE."""
        monkeypatch.setenv("FILTERED_TABLE_PAGE_SIZE", "7")

        assert TableViewController().page_size == 7

    def test_invalid_page_size(self):
        """Test that a page size below 1 is rejected."""
        with pytest.raises(ValueError, match="page_size"):
            TableViewController(page_size=0)

    def test_view_partitions_filters(self, controller):
        """Test that the view separates the search filter from the others."""
        view = controller.get_view()

        assert view.search_filter is controller.filters[0]
        assert view.standard_filters == controller.filters[1:]
        assert view.active_filter_count == 0


class TestSearchNarrowing:
    """Tests for narrowing records through the search filter."""

    def test_narrow_then_clear(self, controller):
        """Test that searching narrows to one device and clearing restores both."""
        controller.on_filter_value_changed(controller.get_view().search_filter, "Biomass")
        view = controller.get_view()
        assert view.total_count == 1
        assert view.page.items[0]["facilityName"] == "Biomass Energy Facility"

        controller.on_filter_value_changed(view.search_filter, "Wuthering Heights")
        view = controller.get_view()
        assert view.total_count == 1
        assert view.page.items[0]["facilityName"] == "Wuthering Heights facility"

        controller.on_filter_value_changed(view.search_filter, "")
        view = controller.get_view()
        assert view.total_count == 2
        assert ids(view) == [0, 1]

    def test_search_and_standard_filters_combine(self, controller):
        """Test that search and standard filters must all admit a record."""
        controller.on_filter_value_changed(controller.find_filter("Fuel"), ["Gaseous"])
        controller.on_filter_value_changed(controller.get_view().search_filter, "facility")

        view = controller.get_view()
        assert ids(view) == [1]
        assert view.active_filter_count == 2


class TestFilterChanges:
    """Tests for changing filter selections."""

    def test_filter_change_resets_to_first_page(self, paged_controller):
        """Test that a new selection jumps back to page 1."""
        paged_controller.on_page_requested(4)
        assert paged_controller.get_view().page.page_index == 4

        paged_controller.on_filter_value_changed(
            paged_controller.find_filter("Country"), "Germany"
        )

        view = paged_controller.get_view()
        assert view.page.page_index == 1
        assert view.total_count == 20
        assert view.page_count == 2
        assert ids(view) == [i for i in range(60) if i % 3 == 1][:10]

    def test_unknown_filter_reference_leaves_state_unchanged(self, controller):
        """Test that a stale filter reference raises without changing anything."""
        stale = controller.find_filter("Country")
        controller.on_filter_value_changed(stale, "Thailand")
        revision = controller.revision
        views = []
        controller.subscribe(views.append)

        with pytest.raises(IdentityNotFoundError):
            controller.on_filter_value_changed(stale, "Chile")

        assert controller.revision == revision
        assert controller.find_filter("Country").selected_value == "Thailand"
        assert views == []

    def test_invalid_value_is_rejected_before_any_change(self, controller):
        """Test that a selection of the wrong type raises and changes nothing."""
        with pytest.raises(TypeError):
            controller.on_filter_value_changed(controller.find_filter("Capacity"), "lots")

        assert controller.revision == 0
        assert controller.find_filter("Capacity").selected_value is None

    def test_clear_filters(self, paged_controller):
        """Test that clearing resets every selection and the page."""
        paged_controller.on_filter_value_changed(
            paged_controller.find_filter("Country"), "Chile"
        )
        paged_controller.on_filter_value_changed(
            paged_controller.find_filter("Fuel"), ["Solar"]
        )

        paged_controller.clear_filters()

        view = paged_controller.get_view()
        assert view.active_filter_count == 0
        assert view.total_count == 60
        assert view.page.page_index == 1

    def test_malformed_slider_does_not_block_other_filters(self, device_records):
        """Test that a slider without a rule is skipped while others apply."""
        definitions = [
            FilterDefinition("capacityInW", "Capacity", SliderInput(min=0, max=10**7)),
            FilterDefinition("facilityName", "Name", DropdownInput()),
        ]
        controller = TableViewController(definitions, device_records)

        controller.on_filter_value_changed(controller.find_filter("Capacity"), 5)
        assert controller.get_view().total_count == 2

        controller.on_filter_value_changed(
            controller.find_filter("Name"), "Biomass Energy Facility"
        )
        assert ids(controller.get_view()) == [1]

    def test_non_numeric_slider_field(self):
        """Test that records with a non-numeric slider field are filtered out."""
        definitions = [
            FilterDefinition(
                "capacity", "Capacity", SliderInput(min=0, max=10, filter_rule=FilterRule.FROM)
            )
        ]
        controller = TableViewController(definitions, [{"capacity": 5}, {"capacity": "n/a"}])

        controller.on_filter_value_changed(controller.find_filter("Capacity"), 3)

        view = controller.get_view()
        assert controller.find_filter("Capacity").selected_value == 3
        assert view.page.items == ({"capacity": 5},)

    def test_failed_evaluation_commits_nothing(self):
        """Test that an error while filtering keeps selections and page as they were."""

        def broken_field(record):
            return record["missing"]

        definitions = [
            FilterDefinition("country", "Country", DropdownInput()),
            FilterDefinition(broken_field, "Broken", DropdownInput()),
        ]
        records = [{"country": "Chile"}, {"country": "Thailand"}]
        controller = TableViewController(definitions, records)
        controller.on_filter_value_changed(controller.find_filter("Country"), "Chile")
        revision = controller.revision

        with pytest.raises(KeyError):
            controller.on_filter_value_changed(controller.find_filter("Broken"), "x")

        assert controller.revision == revision
        assert controller.find_filter("Broken").selected_value is None
        assert controller.get_view().page.items == ({"country": "Chile"},)

        # Clearing still works from the committed state
        controller.clear_filters()
        assert controller.get_view().total_count == 2


class TestDefinitionChanges:
    """Tests for re-supplied filter definitions."""

    def test_same_definitions_keep_selections(self, controller, device_definitions):
        """Test that equal definitions keep selections and emit nothing."""
        controller.on_filter_value_changed(controller.find_filter("Country"), "Thailand")
        views = []
        controller.subscribe(views.append)

        controller.on_definitions_changed(list(device_definitions))

        assert controller.find_filter("Country").selected_value == "Thailand"
        assert views == []

    def test_changed_definitions_reset_selections_and_page(
        self, paged_controller, device_definitions
    ):
        """Test that new definitions drop selections and go back to page 1."""
        paged_controller.on_filter_value_changed(
            paged_controller.find_filter("Fuel"), ["Wind"]
        )
        paged_controller.on_page_requested(2)

        paged_controller.on_definitions_changed(device_definitions[:4])

        view = paged_controller.get_view()
        assert len(view.filters) == 4
        assert view.active_filter_count == 0
        assert view.total_count == 60
        assert view.page.page_index == 1


class TestRecordChanges:
    """Tests for replacing the backing records."""

    def test_same_count_keeps_page(self, paged_controller, many_records):
        """Test that the page is kept when the filtered count is unchanged."""
        paged_controller.on_page_requested(3)

        paged_controller.on_records_changed(list(reversed(many_records)))

        view = paged_controller.get_view()
        assert view.page.page_index == 3
        assert ids(view) == list(range(39, 29, -1))

    def test_different_count_resets_page(self, paged_controller, many_records):
        """Test that a different filtered count goes back to page 1."""
        paged_controller.on_page_requested(3)

        paged_controller.on_records_changed(many_records[:45])

        view = paged_controller.get_view()
        assert view.page.page_index == 1
        assert view.total_count == 45

    def test_selections_survive_record_changes(self, paged_controller, many_records):
        """Test that new records are filtered with the current selections."""
        paged_controller.on_filter_value_changed(
            paged_controller.find_filter("Country"), "Chile"
        )

        paged_controller.on_records_changed(many_records[:30])

        assert paged_controller.find_filter("Country").selected_value == "Chile"
        assert paged_controller.get_view().total_count == 10

    def test_records_before_definitions(self, device_definitions, many_records):
        """Test that records supplied early are shown once definitions arrive."""
        controller = TableViewController(page_size=10)
        controller.on_records_changed(many_records)
        assert controller.get_view().page.items == ()

        controller.on_definitions_changed(device_definitions)

        assert controller.get_view().total_count == 60

    def test_polars_frame_records(self):
        """Test that a polars DataFrame can back the table."""
        frame = pl.DataFrame({"country": ["Thailand", "Chile", "Thailand"], "id": [0, 1, 2]})
        controller = TableViewController(
            [FilterDefinition("country", "Country", DropdownInput())], frame
        )

        controller.on_filter_value_changed(controller.find_filter("Country"), "Thailand")

        assert ids(controller.get_view()) == [0, 2]

    def test_pandas_frame_records(self):
        """Test that a pandas DataFrame can back the table."""
        frame = pd.DataFrame({"country": ["Chile", "Thailand"], "id": [0, 1]})
        controller = TableViewController(
            [FilterDefinition("country", "Country", DropdownInput())]
        )

        controller.on_records_changed(frame)

        assert controller.records == ({"country": "Chile", "id": 0}, {"country": "Thailand", "id": 1})


class TestPageRequests:
    """Tests for page navigation."""

    @pytest.mark.parametrize("requested,expected", [(2, 2), (6, 6), (99, 6), (0, 1)])
    def test_requests_are_clamped(self, paged_controller, requested, expected):
        """Test that out-of-range page numbers are clamped."""
        paged_controller.on_page_requested(requested)

        assert paged_controller.get_view().page.page_index == expected

    def test_same_page_does_not_notify(self, paged_controller):
        """Test that requesting the current page emits nothing."""
        views = []
        paged_controller.subscribe(views.append)

        paged_controller.on_page_requested(1)

        assert views == []


class TestListeners:
    """Tests for listener notification and queued events."""

    def test_listener_receives_each_change(self, paged_controller):
        """Test that every change emits one view."""
        views = []
        paged_controller.subscribe(views.append)

        paged_controller.on_page_requested(2)
        paged_controller.on_filter_value_changed(
            paged_controller.find_filter("Country"), "Chile"
        )

        assert [v.page.page_index for v in views] == [2, 1]
        assert views[-1].total_count == 20

    def test_unsubscribe(self, paged_controller):
        """Test that an unsubscribed listener is no longer called."""
        views = []
        unsubscribe = paged_controller.subscribe(views.append)

        unsubscribe()
        paged_controller.on_page_requested(2)

        assert views == []

    def test_events_from_listeners_are_queued(self, paged_controller):
        """Test that a listener's event runs after the current notification."""
        seen = []

        def listener(view):
            seen.append(view.page.page_index)
            if view.page.page_index == 2:
                paged_controller.on_page_requested(5)
                seen.append("requested")

        paged_controller.subscribe(listener)
        paged_controller.on_page_requested(2)

        assert seen == [2, "requested", 5]
        assert paged_controller.get_view().page.page_index == 5

    def test_stale_reference_fails_in_the_listener(self, paged_controller):
        """Test that a listener's bad filter reference raises in the listener only."""
        stale = paged_controller.find_filter("Country")
        paged_controller.on_filter_value_changed(stale, "Thailand")
        errors = []

        def listener(view):
            try:
                paged_controller.on_filter_value_changed(stale, "Chile")
            except IdentityNotFoundError as e:
                errors.append(e)

        paged_controller.subscribe(listener)
        paged_controller.on_page_requested(2)

        assert len(errors) == 1
        assert paged_controller.get_view().page.page_index == 2
        assert paged_controller.find_filter("Country").selected_value == "Thailand"

    def test_queued_event_failure_does_not_reach_the_outer_caller(
        self, paged_controller, device_definitions, caplog
    ):
        """Test that a queued event failing when run is logged and dropped."""
        queued = []

        def listener(view):
            if queued:
                return
            queued.append(True)
            country = paged_controller.find_filter("Country")
            # Valid now, replaced by the definitions change queued first
            paged_controller.on_definitions_changed(device_definitions[:4])
            paged_controller.on_filter_value_changed(country, "Chile")

        paged_controller.subscribe(listener)
        with caplog.at_level("ERROR", logger="filtered_table"):
            paged_controller.on_page_requested(2)

        assert "Dropped queued event _apply_filter_value" in caplog.text
        view = paged_controller.get_view()
        assert len(view.filters) == 4
        assert paged_controller.find_filter("Country").selected_value is None
        assert view.total_count == 60

    def test_failing_listener_does_not_wedge_the_controller(self, paged_controller):
        """Test that a listener error propagates and later events still run."""

        def explode(view):
            raise RuntimeError("listener failed")

        unsubscribe = paged_controller.subscribe(explode)
        with pytest.raises(RuntimeError, match="listener failed"):
            paged_controller.on_page_requested(2)
        unsubscribe()

        paged_controller.on_page_requested(3)

        assert paged_controller.get_view().page.page_index == 3
