"""
Storage - the repository the engine reads and writes through.

The engine holds no global state. Everything persistent goes through a
Repository passed in by the caller:

- InMemoryRepository: dict-backed, for tests and embedding
- SQLiteRepository: one SQLite file, WAL mode, JSON for list/dict columns

Both hand out per-key locks (`repository.lock(key)`) so read-modify-write
cycles on one bot or user are serialized while different keys never wait
on each other.
"""

import json
import logging
import sqlite3
import threading
import weakref
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .models import (
    BotGrowthState, ConversationMessage, ImportanceLevel, Milestone,
    PersonalityTraits, Stage, StyleProfile, UserFact, UserMemory,
    VocabularyEntry,
)

logger = logging.getLogger(__name__)


class KeyedLocks:
    """
    One re-entrant lock per key, created on first use.

    Locks are held weakly: an entry lives only while some thread holds or
    waits on it, so the map does not grow with every bot and user seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self.get(key)
        with lock:
            yield


class Repository(ABC):
    """Persistence collaborator, one method pair per entity type."""

    def __init__(self):
        self._locks = KeyedLocks()

    def lock(self, key: str):
        """Context manager serializing writers of one bot/user key."""
        return self._locks.hold(key)

    # Growth state
    @abstractmethod
    def get_growth_state(self, bot_id: str) -> Optional[BotGrowthState]: ...

    @abstractmethod
    def save_growth_state(self, state: BotGrowthState) -> None: ...

    # Vocabulary
    @abstractmethod
    def get_vocabulary(self, bot_id: str) -> Dict[str, VocabularyEntry]: ...

    @abstractmethod
    def save_vocabulary_entries(self, bot_id: str, entries: List[VocabularyEntry]) -> None: ...

    # Milestones (append-only)
    @abstractmethod
    def add_milestone(self, bot_id: str, milestone: Milestone) -> None: ...

    @abstractmethod
    def list_milestones(self, bot_id: str) -> List[Milestone]: ...

    # User facts (append-only)
    @abstractmethod
    def add_fact(self, user_id: str, fact: UserFact) -> None: ...

    @abstractmethod
    def list_facts(self, user_id: str) -> List[UserFact]: ...

    # User memories (append-only)
    @abstractmethod
    def add_memory(self, user_id: str, memory: UserMemory) -> None: ...

    @abstractmethod
    def list_memories(self, user_id: str) -> List[UserMemory]: ...

    # Conversation log
    @abstractmethod
    def add_message(self, bot_id: str, message: ConversationMessage) -> None: ...

    @abstractmethod
    def list_messages(self, bot_id: str, limit: Optional[int] = None) -> List[ConversationMessage]: ...

    # Style profiles
    @abstractmethod
    def get_style_profile(self, user_id: str) -> Optional[StyleProfile]: ...

    @abstractmethod
    def save_style_profile(self, user_id: str, profile: StyleProfile) -> None: ...


class InMemoryRepository(Repository):
    """Dict-backed repository. Values are stored as copies via to_dict round-trips."""

    def __init__(self):
        super().__init__()
        self._states: Dict[str, dict] = {}
        self._vocabulary: Dict[str, Dict[str, dict]] = {}
        self._milestones: Dict[str, List[dict]] = {}
        self._facts: Dict[str, List[dict]] = {}
        self._memories: Dict[str, List[dict]] = {}
        self._messages: Dict[str, List[dict]] = {}
        self._profiles: Dict[str, dict] = {}

    def get_growth_state(self, bot_id: str) -> Optional[BotGrowthState]:
        data = self._states.get(bot_id)
        return BotGrowthState.from_dict(data) if data else None

    def save_growth_state(self, state: BotGrowthState) -> None:
        self._states[state.bot_id] = state.to_dict()

    def get_vocabulary(self, bot_id: str) -> Dict[str, VocabularyEntry]:
        return {
            word: VocabularyEntry.from_dict(data)
            for word, data in self._vocabulary.get(bot_id, {}).items()
        }

    def save_vocabulary_entries(self, bot_id: str, entries: List[VocabularyEntry]) -> None:
        words = self._vocabulary.setdefault(bot_id, {})
        for entry in entries:
            words[entry.word] = entry.to_dict()

    def add_milestone(self, bot_id: str, milestone: Milestone) -> None:
        self._milestones.setdefault(bot_id, []).append(milestone.to_dict())

    def list_milestones(self, bot_id: str) -> List[Milestone]:
        return [Milestone.from_dict(d) for d in self._milestones.get(bot_id, [])]

    def add_fact(self, user_id: str, fact: UserFact) -> None:
        self._facts.setdefault(user_id, []).append(fact.to_dict())

    def list_facts(self, user_id: str) -> List[UserFact]:
        return [UserFact.from_dict(d) for d in self._facts.get(user_id, [])]

    def add_memory(self, user_id: str, memory: UserMemory) -> None:
        self._memories.setdefault(user_id, []).append(memory.to_dict())

    def list_memories(self, user_id: str) -> List[UserMemory]:
        return [UserMemory.from_dict(d) for d in self._memories.get(user_id, [])]

    def add_message(self, bot_id: str, message: ConversationMessage) -> None:
        self._messages.setdefault(bot_id, []).append(message.to_dict())

    def list_messages(self, bot_id: str, limit: Optional[int] = None) -> List[ConversationMessage]:
        rows = self._messages.get(bot_id, [])
        if limit is not None:
            rows = rows[-limit:] if limit > 0 else []
        return [ConversationMessage.from_dict(d) for d in rows]

    def get_style_profile(self, user_id: str) -> Optional[StyleProfile]:
        data = self._profiles.get(user_id)
        return StyleProfile.from_dict(data) if data else None

    def save_style_profile(self, user_id: str, profile: StyleProfile) -> None:
        self._profiles[user_id] = profile.to_dict()


class SQLiteRepository(Repository):
    """SQLite-backed repository. One file holds every bot and user."""

    def __init__(self, db_path: str = "reflectibot.db"):
        super().__init__()
        self.db_path = Path(db_path) if db_path != ":memory:" else db_path
        self._conn: Optional[sqlite3.Connection] = None
        # sqlite3 connections are not safe for concurrent use across threads
        self._db_lock = threading.RLock()
        self._connect()

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, timeout=5.0, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA busy_timeout=5000")
            self._init_schema()
        return self._conn

    def _init_schema(self):
        """Create tables if they don't exist."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS growth_states (
                bot_id TEXT PRIMARY KEY,
                vocabulary_size INTEGER DEFAULT 0,
                stage TEXT DEFAULT 'Infant',
                personality_traits TEXT DEFAULT '{}'
            );

            CREATE TABLE IF NOT EXISTS vocabulary (
                bot_id TEXT NOT NULL,
                word TEXT NOT NULL,
                frequency INTEGER DEFAULT 1,
                first_context TEXT,
                first_seen_at TEXT,
                PRIMARY KEY (bot_id, word)
            );

            CREATE TABLE IF NOT EXISTS milestones (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                bot_id TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                achieved_at TEXT
            );

            CREATE TABLE IF NOT EXISTS user_facts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                fact TEXT NOT NULL,
                category TEXT DEFAULT 'general'
            );

            CREATE TABLE IF NOT EXISTS user_memories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                content TEXT NOT NULL,
                category TEXT DEFAULT 'general',
                importance TEXT DEFAULT 'medium',
                tags TEXT DEFAULT '[]',
                emotional_weight REAL DEFAULT 0.5,
                recall_priority REAL DEFAULT 0.5,
                created_at TEXT
            );

            CREATE TABLE IF NOT EXISTS messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                bot_id TEXT NOT NULL,
                sender TEXT NOT NULL,
                text TEXT NOT NULL,
                created_at TEXT
            );

            CREATE TABLE IF NOT EXISTS style_profiles (
                user_id TEXT PRIMARY KEY,
                tone_scores TEXT DEFAULT '{}',
                style_traits TEXT DEFAULT '[]',
                catchphrases TEXT DEFAULT '[]',
                last_updated TEXT
            );
        """)
        self._conn.commit()

    def close(self):
        with self._db_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ==================== Growth state ====================

    def get_growth_state(self, bot_id: str) -> Optional[BotGrowthState]:
        with self._db_lock:
            row = self._conn.execute(
                "SELECT * FROM growth_states WHERE bot_id = ?", (bot_id,)
            ).fetchone()
        if row is None:
            return None
        return BotGrowthState(
            bot_id=row["bot_id"],
            vocabulary_size=row["vocabulary_size"],
            stage=Stage(row["stage"]),
            personality_traits=PersonalityTraits.from_dict(json.loads(row["personality_traits"] or "{}")),
        )

    def save_growth_state(self, state: BotGrowthState) -> None:
        with self._db_lock:
            self._conn.execute("""
                INSERT OR REPLACE INTO growth_states
                    (bot_id, vocabulary_size, stage, personality_traits)
                VALUES (?, ?, ?, ?)
            """, (
                state.bot_id,
                state.vocabulary_size,
                state.stage.value,
                json.dumps(state.personality_traits.to_dict()),
            ))
            self._conn.commit()

    # ==================== Vocabulary ====================

    def get_vocabulary(self, bot_id: str) -> Dict[str, VocabularyEntry]:
        with self._db_lock:
            rows = self._conn.execute(
                "SELECT * FROM vocabulary WHERE bot_id = ?", (bot_id,)
            ).fetchall()
        return {
            row["word"]: VocabularyEntry(
                word=row["word"],
                frequency=row["frequency"],
                first_context=row["first_context"] or "",
                first_seen_at=datetime.fromisoformat(row["first_seen_at"]) if row["first_seen_at"] else datetime.now(),
            )
            for row in rows
        }

    def save_vocabulary_entries(self, bot_id: str, entries: List[VocabularyEntry]) -> None:
        with self._db_lock:
            self._conn.executemany("""
                INSERT OR REPLACE INTO vocabulary
                    (bot_id, word, frequency, first_context, first_seen_at)
                VALUES (?, ?, ?, ?, ?)
            """, [
                (bot_id, e.word, e.frequency, e.first_context, e.first_seen_at.isoformat())
                for e in entries
            ])
            self._conn.commit()

    # ==================== Milestones ====================

    def add_milestone(self, bot_id: str, milestone: Milestone) -> None:
        with self._db_lock:
            self._conn.execute(
                "INSERT INTO milestones (bot_id, title, description, achieved_at) VALUES (?, ?, ?, ?)",
                (bot_id, milestone.title, milestone.description, milestone.achieved_at.isoformat()),
            )
            self._conn.commit()

    def list_milestones(self, bot_id: str) -> List[Milestone]:
        with self._db_lock:
            rows = self._conn.execute(
                "SELECT * FROM milestones WHERE bot_id = ? ORDER BY id", (bot_id,)
            ).fetchall()
        return [Milestone.from_dict(dict(row)) for row in rows]

    # ==================== Facts & memories ====================

    def add_fact(self, user_id: str, fact: UserFact) -> None:
        with self._db_lock:
            self._conn.execute(
                "INSERT INTO user_facts (user_id, fact, category) VALUES (?, ?, ?)",
                (user_id, fact.fact, fact.category),
            )
            self._conn.commit()

    def list_facts(self, user_id: str) -> List[UserFact]:
        with self._db_lock:
            rows = self._conn.execute(
                "SELECT fact, category FROM user_facts WHERE user_id = ? ORDER BY id", (user_id,)
            ).fetchall()
        return [UserFact(fact=row["fact"], category=row["category"]) for row in rows]

    def add_memory(self, user_id: str, memory: UserMemory) -> None:
        with self._db_lock:
            self._conn.execute("""
                INSERT INTO user_memories
                    (user_id, content, category, importance, tags,
                     emotional_weight, recall_priority, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                user_id,
                memory.content,
                memory.category,
                memory.importance.value,
                json.dumps(memory.tags),
                memory.emotional_weight,
                memory.recall_priority,
                memory.created_at.isoformat(),
            ))
            self._conn.commit()

    def list_memories(self, user_id: str) -> List[UserMemory]:
        with self._db_lock:
            rows = self._conn.execute(
                "SELECT * FROM user_memories WHERE user_id = ? ORDER BY id", (user_id,)
            ).fetchall()
        memories = []
        for row in rows:
            try:
                tags = json.loads(row["tags"]) if row["tags"] else []
            except (json.JSONDecodeError, TypeError):
                logger.warning("[Storage] Unreadable tags on memory %s, dropping them", row["id"])
                tags = []
            memories.append(UserMemory(
                content=row["content"],
                category=row["category"],
                importance=ImportanceLevel(row["importance"]),
                tags=tags,
                emotional_weight=row["emotional_weight"],
                recall_priority=row["recall_priority"],
                created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else datetime.now(),
            ))
        return memories

    # ==================== Messages ====================

    def add_message(self, bot_id: str, message: ConversationMessage) -> None:
        with self._db_lock:
            self._conn.execute(
                "INSERT INTO messages (bot_id, sender, text, created_at) VALUES (?, ?, ?, ?)",
                (bot_id, message.sender, message.text, message.created_at.isoformat()),
            )
            self._conn.commit()

    def list_messages(self, bot_id: str, limit: Optional[int] = None) -> List[ConversationMessage]:
        with self._db_lock:
            if limit is None:
                rows = self._conn.execute(
                    "SELECT * FROM messages WHERE bot_id = ? ORDER BY id", (bot_id,)
                ).fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT * FROM (SELECT * FROM messages WHERE bot_id = ? ORDER BY id DESC LIMIT ?) ORDER BY id",
                    (bot_id, max(0, limit)),
                ).fetchall()
        return [ConversationMessage.from_dict(dict(row)) for row in rows]

    # ==================== Style profiles ====================

    def get_style_profile(self, user_id: str) -> Optional[StyleProfile]:
        with self._db_lock:
            row = self._conn.execute(
                "SELECT * FROM style_profiles WHERE user_id = ?", (user_id,)
            ).fetchone()
        if row is None:
            return None
        return StyleProfile.from_dict({
            "tone_scores": json.loads(row["tone_scores"] or "{}"),
            "style_traits": json.loads(row["style_traits"] or "[]"),
            "catchphrases": json.loads(row["catchphrases"] or "[]"),
            "last_updated": row["last_updated"],
        })

    def save_style_profile(self, user_id: str, profile: StyleProfile) -> None:
        with self._db_lock:
            self._conn.execute("""
                INSERT OR REPLACE INTO style_profiles
                    (user_id, tone_scores, style_traits, catchphrases, last_updated)
                VALUES (?, ?, ?, ?, ?)
            """, (
                user_id,
                json.dumps(profile.tone_scores),
                json.dumps(profile.style_traits),
                json.dumps(profile.catchphrases),
                profile.last_updated.isoformat(),
            ))
            self._conn.commit()
