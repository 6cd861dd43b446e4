"""
Tests for the MCP tool layer.
"""

import pytest

from mcp_meadcalc import tools


class FakeMCP:
    """Collects tool functions instead of serving them."""

    def __init__(self):
        self.tools = {}

    def tool(self):
        def decorator(fn):
            self.tools[fn.__name__] = fn
            return fn

        return decorator


@pytest.fixture(autouse=True)
def fresh_session(monkeypatch):
    for name in ("MEADCALC_WEIGHT_UNIT", "MEADCALC_VOLUME_UNIT", "MEADCALC_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    tools.reset_session()
    yield
    tools.reset_session()


@pytest.fixture
def registered():
    mcp = FakeMCP()
    tools.register_tools(mcp)
    return mcp.tools


def test_all_tools_registered(registered):
    assert set(registered) == {
        "calculate_abv",
        "estimate_gravity",
        "plan_recipe",
        "convert_gravity",
        "list_ingredients",
        "set_units",
        "normalize_mass",
        "add_ingredient",
        "remove_ingredient",
        "set_ingredient_percentage",
        "get_allocation",
        "reset_allocation",
    }


class TestCalculatorTools:
    """Tests for the calculator tools."""

    def test_calculate_abv(self, registered):
        result = registered["calculate_abv"](og=1.060, fg=1.010)
        assert result["abv"] == "6.56%"

    def test_errors_become_dicts(self, registered):
        result = registered["calculate_abv"](og=1.010, fg=1.060)
        assert result == {"error": "Original Gravity must be higher than Final Gravity"}

    def test_bad_number(self, registered):
        result = registered["estimate_gravity"](batch_size="five", honey_amount=3)
        assert "must be a number" in result["error"]

    def test_plan_recipe(self, registered):
        result = registered["plan_recipe"](target_abv=12, batch_size=5)
        assert result["ingredients"][0]["amount"] == "12 lbs 7 oz"

    def test_convert_unknown_scale(self, registered):
        result = registered["convert_gravity"](value=1.050, from_scale="plato-ish")
        assert "error" in result

    def test_normalize_mass(self, registered):
        assert registered["normalize_mass"](main=2, sub=18)["display"] == "3 lbs 2 oz"


class TestUnitTools:
    """Tests for unit selection."""

    def test_units_from_environment(self, registered, monkeypatch):
        monkeypatch.setenv("MEADCALC_WEIGHT_UNIT", "metric")
        monkeypatch.setenv("MEADCALC_VOLUME_UNIT", "metric")
        result = registered["estimate_gravity"](batch_size=3.78541, honey_amount=1.360776)
        assert result["batch_size"] == "3.79 L"
        assert result["total_sugar"] == "1 kg 89 g"

    def test_bad_environment(self, registered, monkeypatch):
        monkeypatch.setenv("MEADCALC_WEIGHT_UNIT", "stone")
        result = registered["calculate_abv"](og=1.060, fg=1.010)
        assert "MEADCALC_WEIGHT_UNIT" in result["error"]

    def test_set_units_rerenders(self, registered):
        registered["estimate_gravity"](batch_size=1, honey_amount=3)
        result = registered["set_units"](weight="metric", volume="litres")
        assert result["units"] == {"weight": "metric", "volume": "metric"}
        assert result["displays"]["gravity"]["total_sugar"] == "1 kg 89 g"

    def test_set_units_unknown(self, registered):
        result = registered["set_units"](weight="stone")
        assert result == {"error": "Unknown unit system: stone"}


class TestIngredientTools:
    """Tests for the ingredient and allocation tools."""

    def test_list_all(self, registered):
        result = registered["list_ingredients"]()
        assert result[0] == {
            "id": "honey",
            "display_name": "Honey",
            "fermentable_fraction": 0.8,
        }
        assert len(result) == 22

    def test_search(self, registered):
        result = registered["list_ingredients"](search="tart cherry")
        assert result[0]["id"] == "cherry-tart"
        assert result[0]["confidence"] == 1.0

    def test_add_fuzzy_name(self, registered):
        result = registered["add_ingredient"](name="strawbery")
        added = [e for e in result["entries"] if e["id"] == result["entry_id"]]
        assert added[0]["ingredient_id"] == "strawberry"

    def test_percentage_round_trip(self, registered):
        entry_id = registered["add_ingredient"](name="blueberry")["entry_id"]
        result = registered["set_ingredient_percentage"](entry_id=entry_id, percentage="25")
        assert result["stored"] == 25

        allocation = registered["get_allocation"]()
        assert [e["percentage"] for e in allocation["entries"]] == [75, 25]

        result = registered["remove_ingredient"](entry_id=entry_id)
        assert [e["percentage"] for e in result["entries"]] == [100]

    def test_unknown_entry(self, registered):
        result = registered["remove_ingredient"](entry_id=99)
        assert result == {"error": "No allocation entry with id 99"}

    def test_unknown_panel(self, registered):
        result = registered["get_allocation"](panel="sideboard")
        assert result == {"error": "Unknown allocation panel: sideboard"}

    def test_reset(self, registered):
        registered["add_ingredient"](name="apple")
        result = registered["reset_allocation"]()
        assert [e["ingredient_id"] for e in result["entries"]] == ["honey"]
