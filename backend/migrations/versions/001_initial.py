"""initial schema : mindtrack v2 scoring store

Revision ID: 001_initial
Create Date: 19/10/2026
"""
from alembic import op
import sqlalchemy as sa

revision = '001_initial'
down_revision = None


def upgrade() -> None:
    # ── 1. CONFIGURATIONS ──
    op.create_table("scoring_configurations",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("questionnaire_id", sa.String, nullable=False),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("description", sa.String, nullable=True),
        sa.Column("scoring_method", sa.String, nullable=False, server_default="sum"),
        sa.Column("weights", sa.JSON, nullable=False),
        sa.Column("formula", sa.String, nullable=True),
        sa.Column("formula_variables", sa.JSON, nullable=False),
        sa.Column("min_score", sa.Float, nullable=False, server_default="0"),
        sa.Column("max_score", sa.Float, nullable=False, server_default="100"),
        sa.Column("passing_score", sa.Float, nullable=True),
        sa.Column("visualization_type", sa.String, nullable=False, server_default="gauge"),
        sa.Column("visualization_config", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("is_default", sa.Boolean, server_default=sa.false()),
        sa.Column("created_by", sa.String, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_scoring_configurations_questionnaire_id", "scoring_configurations", ["questionnaire_id"])
    op.create_index("ix_scoring_configurations_is_default", "scoring_configurations", ["is_default"])
    op.create_index(
        "uq_scoring_default_per_questionnaire", "scoring_configurations", ["questionnaire_id"],
        unique=True, postgresql_where=sa.text("is_default"),
    )

    # ── 2. RÈGLES DE RISQUE ──
    op.create_table("scoring_rules",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("config_id", sa.String, sa.ForeignKey("scoring_configurations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("min_score", sa.Float, nullable=False),
        sa.Column("max_score", sa.Float, nullable=False),
        sa.Column("risk_level", sa.String, nullable=False),
        sa.Column("label", sa.String, nullable=False),
        sa.Column("description", sa.String, nullable=True),
        sa.Column("color", sa.String, nullable=False, server_default="#9CA3AF"),
        sa.Column("actions", sa.JSON, nullable=False),
        sa.Column("order_num", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_scoring_rules_config_id", "scoring_rules", ["config_id"])

    # ── 3. CATÉGORIES ──
    op.create_table("score_categories",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("questionnaire_id", sa.String, nullable=False),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("description", sa.String, nullable=True),
        sa.Column("weight", sa.Float, nullable=False, server_default="1"),
        sa.Column("color", sa.String, nullable=False, server_default="#6B7280"),
        sa.Column("order_num", sa.Integer, nullable=False, server_default="0"),
        sa.Column("question_ids", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_score_categories_questionnaire_id", "score_categories", ["questionnaire_id"])

    # ── 4. SCORES CALCULÉS ──
    # config_id sans FK : l'historique survit à la suppression d'une configuration
    op.create_table("calculated_scores",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("response_id", sa.String, nullable=False),
        sa.Column("config_id", sa.String, nullable=False),
        sa.Column("questionnaire_id", sa.String, nullable=False),
        sa.Column("total_score", sa.Float, nullable=False),
        sa.Column("normalized_score", sa.Float, nullable=False),
        sa.Column("percentage", sa.Float, nullable=False),
        sa.Column("risk_level", sa.String, nullable=False),
        sa.Column("risk_label", sa.String, nullable=False),
        sa.Column("risk_color", sa.String, nullable=False),
        sa.Column("actions", sa.JSON, nullable=False),
        sa.Column("category_scores", sa.JSON, nullable=True),
        sa.Column("visualization_data", sa.JSON, nullable=False),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("response_id", "config_id", name="uq_score_response_config"),
    )
    op.create_index("ix_calculated_scores_id", "calculated_scores", ["id"])
    op.create_index("ix_calculated_scores_response_id", "calculated_scores", ["response_id"])
    op.create_index("ix_calculated_scores_config_id", "calculated_scores", ["config_id"])
    op.create_index("ix_calculated_scores_questionnaire_id", "calculated_scores", ["questionnaire_id"])


def downgrade() -> None:
    op.drop_table("calculated_scores")
    op.drop_table("score_categories")
    op.drop_table("scoring_rules")
    op.drop_table("scoring_configurations")
