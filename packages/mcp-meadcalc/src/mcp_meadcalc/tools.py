"""MCP tool definitions for MeadCalc."""

import logging

from fastmcp import FastMCP

from mead_common.catalog import list_ingredients as catalog_ingredients
from mead_common.catalog import search_ingredients
from mead_common.exceptions import MeadCommonError

from mcp_meadcalc.config import get_config
from mcp_meadcalc.session import CalculatorSession

logger = logging.getLogger(__name__)

_session: CalculatorSession | None = None


def _get_session() -> CalculatorSession:
    """Get the calculator session, creating it from configuration on first use."""
    global _session
    if _session is None:
        _session = CalculatorSession(get_config().units)
    return _session


def reset_session() -> None:
    """Drop the current session so the next tool call starts fresh."""
    global _session
    _session = None


def _error(e: MeadCommonError) -> dict:
    logger.info("Rejected input: %s", e)
    return {"error": str(e)}


def register_tools(mcp: FastMCP) -> None:
    """Register all MeadCalc MCP tools."""

    @mcp.tool()
    def calculate_abv(
        og: float | str | None = None,
        fg: float | str | None = None,
    ) -> dict:
        """
        Calculate alcohol by volume from original and final gravity.

        Args:
            og: Original gravity (e.g., 1.060)
            fg: Final gravity (e.g., 1.010)

        Returns ABV, potential ABV and apparent attenuation. Returns
        {"status": "incomplete"} while either reading is empty.
        """
        try:
            return _get_session().calculate_abv(og, fg)
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def estimate_gravity(
        batch_size: float | str | None = None,
        honey_amount: float | str | None = None,
        ingredients: dict[str, float] | None = None,
    ) -> dict:
        """
        Estimate original gravity and potential ABV from ingredients.

        Masses are in the current weight unit (lbs or kg) and the batch
        in the current volume unit (gallons or litres).

        Args:
            batch_size: Batch volume
            honey_amount: Mass of honey
            ingredients: Other fermentables by name, e.g. {"raspberry": 2}

        Returns gravity, sugar totals and the sugar each ingredient adds.
        """
        try:
            return _get_session().estimate_gravity(batch_size, honey_amount, ingredients)
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def plan_recipe(
        target_abv: float | str | None = None,
        batch_size: float | str | None = None,
    ) -> dict:
        """
        Work out ingredient amounts needed for a target ABV.

        Uses the target allocation (100% honey unless edited with
        add_ingredient / set_ingredient_percentage). Amounts are only
        given when the allocation totals exactly 100%.

        Args:
            target_abv: Desired ABV percentage (e.g., 12)
            batch_size: Batch volume in the current volume unit
        """
        try:
            return _get_session().plan_recipe(target_abv, batch_size)
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def convert_gravity(value: float | str | None = None, from_scale: str = "sg") -> dict:
        """
        Convert a reading between SG, Brix, Baumé, ABV and ABW.

        Valid ranges:
        - SG: 0.990 - 1.200
        - Brix: 0 - 50
        - Baumé: 0 - 25
        - ABV / ABW: 0 - 25

        Args:
            value: The reading to convert
            from_scale: "sg", "brix", "baume", "abv" or "abw" (default "sg")
        """
        try:
            return _get_session().convert_gravity(value, from_scale)
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def list_ingredients(search: str | None = None) -> list[dict]:
        """
        List fermentable ingredients and their sugar content.

        Args:
            search: Optional fuzzy search term (e.g., "tart cherry")
        """
        if search:
            return [
                {**d.model_dump(), "confidence": round(score, 2)}
                for d, score in search_ingredients(search)
            ]
        return [d.model_dump() for d in catalog_ingredients()]

    @mcp.tool()
    def set_units(weight: str | None = None, volume: str | None = None) -> dict:
        """
        Switch display units and re-render every calculator panel.

        Args:
            weight: "imperial" (lbs/oz) or "metric" (kg/g)
            volume: "imperial" (gallons) or "metric" (litres)

        Returns the new units and all refreshed displays.
        """
        try:
            session = _get_session()
            units = session.set_units(weight=weight, volume=volume)
            return {"units": units.model_dump(mode="json"), "displays": session.displays}
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def normalize_mass(main: float | str | None = None, sub: float | str | None = None) -> dict:
        """
        Normalize a two-part mass entry, e.g. 2 lb 18 oz -> 3 lb 2 oz.

        Args:
            main: Pounds or kilograms
            sub: Ounces or grams
        """
        try:
            return _get_session().enter_mass(main, sub)
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def add_ingredient(name: str, panel: str = "target") -> dict:
        """
        Add an ingredient to an allocation at 0%.

        Args:
            name: Ingredient name or id (fuzzy matched)
            panel: "target" (recipe planning) or "breakdown"

        Returns the updated allocation including the new entry_id.
        """
        try:
            return _get_session().add_ingredient(name, panel)
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def remove_ingredient(entry_id: int, panel: str = "target") -> dict:
        """
        Remove an ingredient; its share goes back to honey.

        Args:
            entry_id: Entry id from get_allocation
            panel: "target" or "breakdown"
        """
        try:
            return _get_session().remove_ingredient(entry_id, panel)
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def set_ingredient_percentage(
        entry_id: int,
        percentage: float | str,
        panel: str = "target",
    ) -> dict:
        """
        Set an ingredient's share of the fermentable sugar.

        Honey adjusts automatically to keep the total at 100%. Values
        are clamped to the available headroom; "stored" holds the value
        actually applied.

        Args:
            entry_id: Entry id from get_allocation
            percentage: Share of total sugar, 0 - 100
            panel: "target" or "breakdown"
        """
        try:
            return _get_session().set_percentage(entry_id, percentage, panel)
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def get_allocation(panel: str = "target") -> dict:
        """
        Show an allocation's entries, total percentage and state.

        Args:
            panel: "target" or "breakdown"
        """
        try:
            session = _get_session()
            return session.render_allocation(session.allocation(panel))
        except MeadCommonError as e:
            return _error(e)

    @mcp.tool()
    def reset_allocation(panel: str = "target") -> dict:
        """
        Clear an allocation. The target panel returns to 100% honey.

        Args:
            panel: "target" or "breakdown"
        """
        try:
            return _get_session().reset_allocation(panel)
        except MeadCommonError as e:
            return _error(e)
