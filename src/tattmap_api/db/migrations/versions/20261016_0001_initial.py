"""initial

Revision ID: 20261016_0001
Revises:
Create Date: 2026-10-16

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from geoalchemy2 import Geometry
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261016_0001"
down_revision = None
branch_labels = None
depends_on = None

user_role = postgresql.ENUM("ADMIN", "USER", name="user_role", create_type=False)


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis;")
    user_role.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("google_id", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="USER"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_google_id", "users", ["google_id"], unique=True)
    op.create_unique_constraint("uq_users_email", "users", ["email"])

    op.create_table(
        "artists",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            primary_key=True,
        ),
        sa.Column("city", sa.String(length=200), nullable=False),
        sa.Column("country", sa.String(length=200), nullable=False),
        sa.Column("country_code", sa.String(length=10), nullable=True),
        sa.Column("region_name", sa.String(length=200), nullable=True),
        sa.Column("region_code", sa.String(length=50), nullable=True),
        sa.Column("region_code_full", sa.String(length=50), nullable=True),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("postcode", sa.String(length=20), nullable=True),
        sa.Column("street_name", sa.String(length=300), nullable=True),
        sa.Column("address_number", sa.String(length=20), nullable=True),
        sa.Column("lat", sa.Numeric(9, 6), nullable=True),
        sa.Column("lon", sa.Numeric(9, 6), nullable=True),
        sa.Column("routable_lat", sa.Numeric(9, 6), nullable=True),
        sa.Column("routable_lon", sa.Numeric(9, 6), nullable=True),
        sa.Column(
            "location",
            Geometry(geometry_type="POINT", srid=4326, spatial_index=False),
            nullable=True,
        ),
        sa.Column("geo_raw", postgresql.JSONB(), nullable=True),
        sa.Column("nickname", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "styles",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
        ),
        sa.Column("instagram", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("avatar", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "photos",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
        ),
        sa.Column("beginner", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("color", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("black_and_gray", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("coverups", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("tiktok", sa.String(length=100), nullable=True),
        sa.Column("facebook", sa.String(length=100), nullable=True),
        sa.Column("telegram", sa.String(length=100), nullable=True),
        sa.Column("whatsapp", sa.String(length=100), nullable=True),
        sa.Column("wechat", sa.String(length=100), nullable=True),
        sa.Column("snapchat", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_artists_created_at", "artists", ["created_at"])
    op.create_index("ix_artists_country_code", "artists", ["country_code"])
    op.create_index("ix_artists_lat_lon", "artists", ["lat", "lon"])
    op.create_index("ix_artists_location", "artists", ["location"], postgresql_using="gist")
    op.execute(
        "CREATE INDEX ix_artists_location_geography ON artists "
        "USING gist ((location::geography))"
    )

    op.create_table(
        "likes",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            primary_key=True,
        ),
        sa.Column(
            "artist_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("artists.user_id"),
            primary_key=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_likes_artist_id", "likes", ["artist_id"])


def downgrade() -> None:
    op.drop_index("ix_likes_artist_id", table_name="likes")
    op.drop_table("likes")
    op.execute("DROP INDEX IF EXISTS ix_artists_location_geography")
    op.drop_index("ix_artists_location", table_name="artists")
    op.drop_index("ix_artists_lat_lon", table_name="artists")
    op.drop_index("ix_artists_country_code", table_name="artists")
    op.drop_index("ix_artists_created_at", table_name="artists")
    op.drop_table("artists")
    op.drop_constraint("uq_users_email", "users", type_="unique")
    op.drop_index("ix_users_google_id", table_name="users")
    op.drop_table("users")
    user_role.drop(op.get_bind(), checkfirst=True)
