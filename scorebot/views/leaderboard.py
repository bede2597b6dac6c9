"""
Leaderboard view components

Interactive Discord UI for paging through and re-sorting the leaderboard.
"""

import logging

import discord
from discord.ui import View, Button, Select

from scorebot.constants import PaginationConstants
from scorebot.utils.embeds import SORT_LABELS, build_leaderboard_embed
from scorebot.utils.error_embeds import ErrorEmbeds

logger = logging.getLogger(__name__)

# Columns where a larger value reads naturally first
DESCENDING_BY_DEFAULT = {'physical', 'mental', 'extras', 'total'}


class LeaderboardView(View):
    """Paginated, sortable leaderboard view."""

    def __init__(
        self,
        leaderboard_service,
        sort_by: str,
        descending: bool,
        current_page: int,
        total_pages: int,
        *,
        page_size: int = PaginationConstants.DEFAULT_PAGE_SIZE,
        timeout: int = PaginationConstants.VIEW_TIMEOUT
    ):
        super().__init__(timeout=timeout)
        self.leaderboard_service = leaderboard_service
        self.sort_by = sort_by
        self.descending = descending
        self.current_page = current_page
        self.total_pages = total_pages
        self.page_size = page_size

        self._update_buttons()

    def _update_buttons(self):
        """Update button states based on current page."""
        self.clear_items()

        prev_button = Button(
            label="Previous",
            style=discord.ButtonStyle.primary,
            disabled=self.current_page <= 1,
            custom_id="leaderboard:prev"
        )
        prev_button.callback = self.previous_page
        self.add_item(prev_button)

        page_indicator = Button(
            label=f"Page {self.current_page}/{self.total_pages}",
            style=discord.ButtonStyle.secondary,
            disabled=True
        )
        self.add_item(page_indicator)

        next_button = Button(
            label="Next",
            style=discord.ButtonStyle.primary,
            disabled=self.current_page >= self.total_pages,
            custom_id="leaderboard:next"
        )
        next_button.callback = self.next_page
        self.add_item(next_button)

        direction_button = Button(
            label="↓ Desc" if self.descending else "↑ Asc",
            style=discord.ButtonStyle.secondary,
            custom_id="leaderboard:direction"
        )
        direction_button.callback = self.toggle_direction
        self.add_item(direction_button)

        self.add_item(SortSelect(self.sort_by))

    async def previous_page(self, interaction: discord.Interaction):
        """Navigate to previous page."""
        await interaction.response.defer()
        if self.current_page > 1:
            self.current_page -= 1
            await self._update_leaderboard(interaction)

    async def next_page(self, interaction: discord.Interaction):
        """Navigate to next page."""
        await interaction.response.defer()
        if self.current_page < self.total_pages:
            self.current_page += 1
            await self._update_leaderboard(interaction)

    async def toggle_direction(self, interaction: discord.Interaction):
        """Flip the sort direction and go back to the first page."""
        await interaction.response.defer()
        self.descending = not self.descending
        self.current_page = 1
        await self._update_leaderboard(interaction)

    async def _update_leaderboard(self, interaction: discord.Interaction):
        """Fetch and display updated leaderboard page."""
        try:
            page_data = await self.leaderboard_service.get_page(
                page=self.current_page,
                page_size=self.page_size,
                sort_by=self.sort_by,
                descending=self.descending
            )

            # Participants may have been added or removed since the last page
            self.total_pages = page_data.total_pages
            self._update_buttons()

            await interaction.followup.edit_message(
                message_id=interaction.message.id,
                embed=build_leaderboard_embed(page_data),
                view=self
            )
        except Exception as e:
            logger.error(f"Error updating leaderboard: {e}", exc_info=True)
            await interaction.followup.send(
                embed=ErrorEmbeds.command_error("Could not refresh the leaderboard."),
                ephemeral=True
            )


class SortSelect(Select):
    """Dropdown for changing sort order."""

    def __init__(self, current_sort: str):
        options = [
            discord.SelectOption(
                label=label,
                value=value,
                default=current_sort == value
            )
            for value, label in SORT_LABELS.items()
        ]

        super().__init__(
            placeholder="Sort by...",
            options=options,
            custom_id="leaderboard:sort"
        )

    async def callback(self, interaction: discord.Interaction):
        """Handle sort change."""
        await interaction.response.defer()

        view: LeaderboardView = self.view
        view.sort_by = self.values[0]
        view.descending = view.sort_by in DESCENDING_BY_DEFAULT
        view.current_page = 1
        await view._update_leaderboard(interaction)
