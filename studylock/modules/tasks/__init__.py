"""Tasks module for deadline-bound study tasks."""

from studylock.core.module import ScheduledJob


class TasksModule:
    """Tasks module for student accountability.

    Provides:
    - Task CRUD and lifecycle (pending, submitted, approved, rejected, missed)
    - Proof submission with AI verification and duplicate-proof guard
    - Profile counters (points, streaks, reliability)
    """

    @property
    def name(self) -> str:
        """Module name (unique identifier)."""
        return "tasks"

    @property
    def description(self) -> str:
        """Module description (human-readable)."""
        return "Deadline-bound tasks with verified proof of completion"

    def get_table_schemas(self) -> dict[str, str]:
        """Return table schemas for this module."""
        return {
            "tasks": """CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        user_id TEXT NOT NULL,
        buddy_id TEXT,
        title TEXT NOT NULL,
        description TEXT,
        task_type TEXT NOT NULL DEFAULT 'personal'
            CHECK (task_type IN ('assignment', 'exam_prep', 'project', 'personal')),
        deadline TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'submitted', 'approved', 'rejected', 'missed')),
        proof_text TEXT,
        proof_url TEXT,
        proof_hash TEXT,
        ai_verified INTEGER NOT NULL DEFAULT 0,
        ai_feedback TEXT,
        ai_confidence INTEGER,
        points_earned INTEGER NOT NULL DEFAULT 0,
        reminder_sent INTEGER NOT NULL DEFAULT 0,
        submitted_at TEXT,
        approved_at TEXT
    )""",
            "profiles": """CREATE TABLE IF NOT EXISTS profiles (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        user_id TEXT NOT NULL UNIQUE,
        reliability_score INTEGER NOT NULL DEFAULT 100,
        streak_count INTEGER NOT NULL DEFAULT 0,
        total_completed INTEGER NOT NULL DEFAULT 0,
        total_points INTEGER NOT NULL DEFAULT 0
    )""",
        }

    def get_indexes(self) -> list[str]:
        """Return indexes for this module's tables."""
        return [
            "CREATE INDEX IF NOT EXISTS idx_tasks_user_id ON tasks (user_id)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_buddy_id ON tasks (buddy_id)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_status_deadline ON tasks (status, deadline)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_proof_hash ON tasks (proof_hash)",
        ]

    def get_scheduled_jobs(self) -> list[ScheduledJob]:
        """Return scheduled jobs for this module."""
        return []
