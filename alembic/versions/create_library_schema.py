"""Create the library schema

Revision ID: 3a1f0c6d9b24
Revises:
Create Date: 2025-01-15 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a1f0c6d9b24'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts, catalogue, circulation, notification, chat and AI tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('student_id', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_student_id', 'users', ['student_id'], unique=True)

    op.create_table(
        'books',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('author', sa.String(), nullable=False),
        sa.Column('isbn', sa.String(), nullable=True),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('publisher', sa.String(), nullable=True),
        sa.Column('total_copies', sa.Integer(), nullable=False),
        sa.Column('available_copies', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    for column in ('id', 'title', 'author', 'isbn', 'category'):
        op.create_index(f'ix_books_{column}', 'books', [column])

    op.create_table(
        'bookaicontents',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('book_id', sa.String(), sa.ForeignKey('books.id'), nullable=False, unique=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('study_guide', sa.Text(), nullable=True),
        sa.Column('quotes', sa.JSON(), nullable=True),
        sa.Column('comprehension_qa', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_bookaicontents_id', 'bookaicontents', ['id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('book_id', sa.String(), sa.ForeignKey('books.id'), nullable=False),
        sa.Column('borrowed_date', sa.DateTime(), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        sa.Column('returned_date', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('reminder_sent_at', sa.DateTime(), nullable=True),
    )
    for column in ('id', 'user_id', 'book_id', 'status'):
        op.create_index(f'ix_transactions_{column}', 'transactions', [column])

    op.create_table(
        'bookrequests',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('book_id', sa.String(), sa.ForeignKey('books.id'), nullable=False),
        sa.Column('requested_by', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('request_date', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('processed_by', sa.String(), nullable=True),
        sa.Column('processed_date', sa.DateTime(), nullable=True),
        sa.Column('transaction_id', sa.String(), sa.ForeignKey('transactions.id'), nullable=True),
    )
    for column in ('id', 'user_id', 'book_id', 'status'):
        op.create_index(f'ix_bookrequests_{column}', 'bookrequests', [column])

    op.create_table(
        'extensionrequests',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('transaction_id', sa.String(), sa.ForeignKey('transactions.id'), nullable=False),
        sa.Column('request_date', sa.DateTime(), nullable=False),
        sa.Column('requested_due_date', sa.DateTime(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('processed_by', sa.String(), nullable=True),
        sa.Column('processed_date', sa.DateTime(), nullable=True),
    )
    for column in ('id', 'user_id', 'transaction_id', 'status'):
        op.create_index(f'ix_extensionrequests_{column}', 'extensionrequests', [column])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])

    op.create_table(
        'chatsessions',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_chatsessions_id', 'chatsessions', ['id'])
    op.create_index('ix_chatsessions_user_id', 'chatsessions', ['user_id'])

    op.create_table(
        'chatmessages',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('session_id', sa.String(), sa.ForeignKey('chatsessions.id'), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('book_links', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_chatmessages_id', 'chatmessages', ['id'])

    op.create_table(
        'aipredictions',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('target_id', sa.String(), nullable=False),
        sa.Column('prediction', sa.JSON(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('reasoning', sa.Text(), nullable=True),
        sa.Column('valid_until', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    for column in ('id', 'type', 'target_id', 'created_at'):
        op.create_index(f'ix_aipredictions_{column}', 'aipredictions', [column])

    op.create_table(
        'aianalytics',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('insights', sa.Text(), nullable=True),
        sa.Column('valid_until', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    for column in ('id', 'type', 'created_at'):
        op.create_index(f'ix_aianalytics_{column}', 'aianalytics', [column])


def downgrade() -> None:
    """Drop every library table, children first."""
    for table in (
        'aianalytics', 'aipredictions', 'chatmessages', 'chatsessions', 'notifications',
        'extensionrequests', 'bookrequests', 'transactions', 'bookaicontents', 'books', 'users',
    ):
        op.drop_table(table)
