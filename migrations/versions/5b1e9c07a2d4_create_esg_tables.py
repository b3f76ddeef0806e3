"""create analysis, compliance rule and compliance result tables

Revision ID: 5b1e9c07a2d4
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5b1e9c07a2d4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'analysis_results',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('input_text', sa.Text(), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('entities', postgresql.JSONB(), nullable=False),
        sa.Column('esg_scores', postgresql.JSONB(), nullable=False),
        sa.Column('key_insights', postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column('risks', postgresql.JSONB(), nullable=False),
        sa.Column('recommendations', postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='completed'),
        sa.Column('source', sa.String(length=50), nullable=False, server_default='deepseek-api'),
    )
    op.create_index('ix_analysis_results_created_at', 'analysis_results', ['created_at'])

    op.create_table(
        'compliance_rules',
        sa.Column('id', sa.String(length=10), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('threshold', sa.Numeric(3, 2), nullable=False, server_default='0.8'),
    )
    op.create_index('ix_compliance_rules_created_at', 'compliance_rules', ['created_at'])

    op.create_table(
        'compliance_results',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('analysis_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('analysis_results.id'), nullable=False),
        sa.Column('overall_rate', sa.Integer(), nullable=False),
        sa.Column('passed_count', sa.Integer(), nullable=False),
        sa.Column('warnings_count', sa.Integer(), nullable=False),
        sa.Column('failed_count', sa.Integer(), nullable=False),
        sa.Column('detailed_results', postgresql.JSONB(), nullable=False),
        sa.Column('source', sa.String(length=50), nullable=True),
    )
    op.create_index('ix_compliance_results_created_at', 'compliance_results', ['created_at'])
    op.create_index('ix_compliance_results_analysis_id', 'compliance_results', ['analysis_id'])


def downgrade() -> None:
    op.drop_index('ix_compliance_results_analysis_id', table_name='compliance_results')
    op.drop_index('ix_compliance_results_created_at', table_name='compliance_results')
    op.drop_table('compliance_results')
    op.drop_index('ix_compliance_rules_created_at', table_name='compliance_rules')
    op.drop_table('compliance_rules')
    op.drop_index('ix_analysis_results_created_at', table_name='analysis_results')
    op.drop_table('analysis_results')
