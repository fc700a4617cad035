"""Initial schema: seats, games, promotions, users, game_tickets, ticket_requests.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "seats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("section", sa.String(32), nullable=False),
        sa.Column("row", sa.String(32), nullable=False),
        sa.Column("seat", sa.String(32), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("section", "row", "seat", name="uq_seat_identity"),
    )
    op.create_index("ix_seats_id", "seats", ["id"])

    op.create_table(
        "games",
        sa.Column("game_pk", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("game_guid", sa.String(64), nullable=True),
        sa.Column("game_type", sa.String(4), nullable=False),
        sa.Column("season", sa.String(8), nullable=False),
        sa.Column("game_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("official_date", sa.Date(), nullable=False),
        sa.Column("status_abstract", sa.String(32), nullable=False),
        sa.Column("status_detailed", sa.String(64), nullable=False),
        sa.Column("status_code", sa.String(8), nullable=False),
        sa.Column("start_time_tbd", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("away_team_id", sa.Integer(), nullable=False),
        sa.Column("away_team_name", sa.String(128), nullable=False),
        sa.Column("away_score", sa.Integer(), nullable=True),
        sa.Column("away_is_winner", sa.Boolean(), nullable=True),
        sa.Column("home_team_id", sa.Integer(), nullable=False),
        sa.Column("home_team_name", sa.String(128), nullable=False),
        sa.Column("home_score", sa.Integer(), nullable=True),
        sa.Column("home_is_winner", sa.Boolean(), nullable=True),
        sa.Column("venue_id", sa.Integer(), nullable=False),
        sa.Column("venue_name", sa.String(128), nullable=False),
        sa.Column("day_night", sa.String(8), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("series_description", sa.String(128), nullable=True),
        sa.Column("series_game_number", sa.Integer(), nullable=True),
        sa.Column("games_in_series", sa.Integer(), nullable=True),
        sa.Column("double_header", sa.String(1), nullable=False, server_default=sa.text("'N'")),
        sa.Column("game_number", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("scheduled_innings", sa.Integer(), nullable=False, server_default=sa.text("9")),
        sa.Column("is_tie", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_games_game_date", "games", ["game_date"])
    # Home-game filtering drives both ticket generation and the schedule listing
    op.create_index("ix_games_home_team_date", "games", ["home_team_id", "game_date"])

    op.create_table(
        "promotions",
        sa.Column("offer_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("game_pk", sa.Integer(), sa.ForeignKey("games.game_pk"), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("offer_type", sa.String(64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("distribution", sa.String(255), nullable=True),
        sa.Column("presented_by", sa.String(255), nullable=True),
        sa.Column("alt_page_url", sa.String(512), nullable=True),
        sa.Column("ticket_link", sa.String(512), nullable=True),
        sa.Column("thumbnail_url", sa.String(512), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("auth_sub", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'member'")),
        *_timestamps(),
        sa.CheckConstraint("role IN ('member', 'admin')", name="check_user_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_auth_sub", "users", ["auth_sub"], unique=True)

    op.create_table(
        "game_tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("game_pk", sa.Integer(), sa.ForeignKey("games.game_pk"), nullable=False),
        sa.Column("seat_id", sa.Integer(), sa.ForeignKey("seats.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'available'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("assigned_to", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        # One ticket per (game, seat): backfill relies on ON CONFLICT against this
        sa.UniqueConstraint("game_pk", "seat_id", name="uq_game_ticket_game_seat"),
        sa.CheckConstraint(
            "status IN ('available', 'assigned', 'held', 'unavailable')",
            name="check_game_ticket_status",
        ),
    )
    op.create_index("ix_game_tickets_id", "game_tickets", ["id"])
    op.create_index("ix_game_tickets_game_pk", "game_tickets", ["game_pk"])
    op.create_index("ix_game_tickets_seat_id", "game_tickets", ["seat_id"])
    op.create_index("ix_game_tickets_assigned_game", "game_tickets", ["assigned_to", "game_pk"])

    op.create_table(
        "ticket_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("game_pk", sa.Integer(), sa.ForeignKey("games.game_pk"), nullable=False),
        sa.Column("seats_requested", sa.Integer(), nullable=False),
        sa.Column("seats_approved", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "game_pk", name="uq_ticket_request_user_game"),
        sa.CheckConstraint("seats_requested > 0", name="check_request_seats_requested"),
        sa.CheckConstraint("seats_approved >= 0", name="check_request_seats_approved"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'declined', 'withdrawn')",
            name="check_request_status",
        ),
    )
    op.create_index("ix_ticket_requests_id", "ticket_requests", ["id"])
    op.create_index("ix_ticket_requests_user_id", "ticket_requests", ["user_id"])
    op.create_index("ix_ticket_requests_game_pk", "ticket_requests", ["game_pk"])


def downgrade() -> None:
    op.drop_table("ticket_requests")
    op.drop_table("game_tickets")
    op.drop_table("users")
    op.drop_table("promotions")
    op.drop_table("games")
    op.drop_table("seats")
