"""
Companion engine - one user turn through every analyzer, in order.

    text -> keywords -> intent (with context) -> time context
         -> importance -> store message/memory/facts
         -> growth update -> style update

The engine owns no state of its own. Everything persistent goes through the
repository it was given; the text-generation collaborator is only used for
retrospective summaries.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .config import EngineConfig
from .growth import GrowthTracker, GrowthUpdate
from .intent import detect_intent, generate_response_strategy
from .keywords import extract_facts, extract_keywords
from .llm_gateway import TextGenerator
from .memory_importance import analyze_memory_importance, build_user_memory
from .models import (
    ConversationContext, ConversationMessage, Intent, IntentType,
    MemoryAnalysis, MemoryFlags, MemorySummary, Stage, SummaryContext,
    TimeContext, UserFact, UserMemory, VoiceSettings,
)
from .storage import Repository
from .style_profile import StyleProfileAdapter
from .summary import SummaryGenerator
from .time_context import extract_time_context, generate_time_based_context
from .voice import BaseVoice, get_voice_by_id, get_voice_settings

logger = logging.getLogger(__name__)


STAGE_BEHAVIORS = {
    Stage.INFANT: "Simple responses, repeat words, curious sounds",
    Stage.TODDLER: "Basic sentences, ask simple questions",
    Stage.CHILD: "More complex thoughts, reference past conversations",
    Stage.ADOLESCENT: "Nuanced responses, emotional awareness",
    Stage.ADULT: "Sophisticated dialogue, deep connections to memories",
}

PROMPT_MEMORY_LIMIT = 10
PROMPT_HISTORY_LIMIT = 6


@dataclass
class TurnAnalysis:
    """Everything the engine worked out about one user message."""
    user_id: str
    bot_id: str
    text: str
    mood: str
    keywords: List[str]
    intent: Intent
    strategy: str
    time_context: TimeContext
    analysis: MemoryAnalysis
    growth: GrowthUpdate
    style_prompt: str
    memory: Optional[UserMemory] = None
    new_facts: List[UserFact] = field(default_factory=list)
    known_facts: List[str] = field(default_factory=list)
    recent_messages: List[ConversationMessage] = field(default_factory=list)
    recent_memories: List[UserMemory] = field(default_factory=list)

    @property
    def stage(self) -> Stage:
        return self.growth.stage

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "bot_id": self.bot_id,
            "text": self.text,
            "mood": self.mood,
            "keywords": list(self.keywords),
            "intent": self.intent.to_dict(),
            "strategy": self.strategy,
            "time_context": self.time_context.to_dict(),
            "analysis": self.analysis.to_dict(),
            "growth": self.growth.to_dict(),
            "style_prompt": self.style_prompt,
            "new_facts": [f.to_dict() for f in self.new_facts],
        }


class CompanionEngine:
    """
    Facade over the analyzers for a single deployment.

    Args:
        repository: Where growth state, facts, memories, messages and style live
        config: Rule tables, stage ladder, voices, summary limits (defaults if None)
        text_generator: Collaborator for retrospective summaries (None = fallback only)
    """

    def __init__(
        self,
        repository: Repository,
        config: Optional[EngineConfig] = None,
        text_generator: Optional[TextGenerator] = None,
    ):
        self.config = config or EngineConfig()
        self._repo = repository
        rules = self.config.rules
        self.growth = GrowthTracker(
            repository,
            ladder=self.config.stages.to_ladder(),
            rules=rules.growth,
            keyword_rules=rules.keywords,
        )
        self.style = StyleProfileAdapter(repository, rules=rules.style)
        self.summaries = SummaryGenerator(
            text_generator,
            timeout=self.config.summary.timeout_seconds,
            temperature=self.config.summary.temperature,
            max_tokens=self.config.summary.max_tokens,
        )

    @property
    def repository(self) -> Repository:
        return self._repo

    def _build_context(self, user_id: str, bot_id: str, mood: str):
        facts = self._repo.list_facts(user_id)
        recent = self._repo.list_messages(bot_id, limit=self.config.recent_message_window)
        context = ConversationContext(
            recent_messages=[m.text for m in recent],
            user_facts=[f.fact for f in facts],
            current_mood=mood,
            stage=self.growth.get_stage(bot_id),
        )
        return context, facts, recent

    def process_message(
        self,
        user_id: str,
        bot_id: str,
        text: Optional[str],
        mood: str = "neutral",
        now: Optional[datetime] = None,
    ) -> TurnAnalysis:
        """
        Run one user message through the pipeline and persist what it taught.

        Blank messages are classified (casual, default time context) but
        nothing about them is stored.
        """
        now = now or datetime.now()
        text = text or ""
        rules = self.config.rules

        keywords = extract_keywords(text, rules.keywords)
        time_context = extract_time_context(text, now, rules.time)

        # bot before user; growth re-enters the bot lock
        with self._repo.lock(f"bot:{bot_id}"), self._repo.lock(f"user:{user_id}"):
            context, facts, recent = self._build_context(user_id, bot_id, mood)
            intent = detect_intent(text, context, rules.intent, rules.keywords)
            strategy = generate_response_strategy(intent, rules.intent)

            vocabulary = self._repo.get_vocabulary(bot_id)
            flags = MemoryFlags(
                is_first_mention=any(word not in vocabulary for word in keywords),
                contains_personal_info=(
                    intent.type == IntentType.INFORMATION_SHARING and bool(intent.entities)
                ),
                emotional_context=intent.type.value,
                user_initiated=True,
            )
            analysis = analyze_memory_importance(text, flags, time_context, rules.importance, rules.time)

            memory = None
            new_facts: List[UserFact] = []
            if text.strip():
                self._repo.add_message(bot_id, ConversationMessage(sender="user", text=text, created_at=now))
                memory = build_user_memory(text, analysis, created_at=now)
                self._repo.add_memory(user_id, memory)

                known = {f.fact for f in facts}
                for fact in extract_facts(text, rules.keywords):
                    if fact.fact not in known:
                        self._repo.add_fact(user_id, fact)
                        known.add(fact.fact)
                        new_facts.append(fact)

            growth = self.growth.process_message(bot_id, text, now=now)

        if text.strip():
            style_prompt = self.style.update_and_get_prompt(user_id, text)
        else:
            style_prompt = self.style.generate_style_prompt(user_id)

        logger.debug("[Engine] %s -> %s (%s, %s)", user_id, bot_id, intent.type.value, analysis.importance.value)
        return TurnAnalysis(
            user_id=user_id,
            bot_id=bot_id,
            text=text,
            mood=mood,
            keywords=keywords,
            intent=intent,
            strategy=strategy,
            time_context=time_context,
            analysis=analysis,
            growth=growth,
            style_prompt=style_prompt,
            memory=memory,
            new_facts=new_facts,
            known_facts=[f.fact for f in facts] + [f.fact for f in new_facts],
            recent_messages=recent,
            recent_memories=self._repo.list_memories(user_id)[-PROMPT_MEMORY_LIMIT:],
        )

    def record_bot_response(self, bot_id: str, text: str, now: Optional[datetime] = None) -> ConversationMessage:
        """Store what the bot said so summaries can see both sides."""
        message = ConversationMessage(sender="bot", text=text, created_at=now or datetime.now())
        self._repo.add_message(bot_id, message)
        return message

    def build_system_prompt(self, turn: TurnAnalysis) -> str:
        """System prompt for the response generator, built from one analyzed turn."""
        memories = "\n".join(m.content for m in turn.recent_memories)
        facts = "\n".join(turn.known_facts)
        history = "\n".join(
            f"{m.sender}: {m.text}" for m in turn.recent_messages[-PROMPT_HISTORY_LIMIT:]
        )
        behaviors = "\n".join(f"- {stage.value}: {text}" for stage, text in STAGE_BEHAVIORS.items())
        tags = ", ".join(turn.analysis.tags) or "none"
        time_line = generate_time_based_context(turn.time_context, self.config.rules.time)

        return f"""You are Reflectibot, an AI companion in the "{turn.stage.value}" learning stage. You learn and grow through conversations.

Context Analysis:
- {time_line}
- Conversation Intent: {turn.intent.type.value} (confidence: {turn.intent.confidence})
- Response Strategy: {turn.strategy}
- Memory Importance: {turn.analysis.importance.value} - Tags: {tags}

Your current knowledge:
Facts about user: {facts or 'None yet'}
Recent memories: {memories or 'None yet'}
Recent conversation: {history or 'This is the start'}
Words learned: {turn.growth.vocabulary_size}

Stage behaviors:
{behaviors}

Style: {turn.style_prompt}

Respond naturally according to your developmental stage and the detected intent. Show emotional intelligence and contextual awareness based on the conversation analysis. Reference your stored knowledge appropriately."""

    def voice_for(self, bot_id: str, mood: Optional[str]) -> VoiceSettings:
        return get_voice_settings(mood, self.growth.get_stage(bot_id), self.config.voice)

    def base_voice(self, voice_id: Optional[str] = None) -> BaseVoice:
        """The user's chosen speaker, or the configured default."""
        return get_voice_by_id(voice_id or self.config.voice.default_base_voice)

    async def summarize(
        self,
        user_id: str,
        bot_id: str,
        timeframe: str = "recent conversations",
        emotional_tone: str = "neutral",
    ) -> MemorySummary:
        """Retrospective summary over the most recent conversation window."""
        messages = self._repo.list_messages(bot_id, limit=self.config.summary.message_window)
        context = SummaryContext(
            user_messages=[m.text for m in messages if m.sender == "user"],
            bot_responses=[m.text for m in messages if m.sender == "bot"],
            timeframe=timeframe,
            user_facts=[f.fact for f in self._repo.list_facts(user_id)],
            emotional_tone=emotional_tone,
            stage=self.growth.get_stage(bot_id),
        )
        return await self.summaries.generate_summary(context)
