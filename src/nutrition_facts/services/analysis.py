"""LLM-backed ingredient lookup, meal analysis and daily goals."""

import base64
import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from nutrition_facts.domain.ledger import DayEntry, Ingredient
from nutrition_facts.domain.nutrition import NutrientProfile
from nutrition_facts.domain.profile import DailyGoals, UserProfile
from nutrition_facts.domain.providers import ResolvedProvider
from nutrition_facts.services.aggregation import round_half_up
from nutrition_facts.services.extraction import (
    UnparsableResponseError,
    extract_json,
    extract_json_array,
)
from nutrition_facts.services.normalizer import (
    normalize,
    normalize_daily_goals,
    normalize_nutrients,
)
from nutrition_facts.services.profile import activity_level_label, goal_label

DEFAULT_MAX_TOKENS = 1024
GOALS_MAX_TOKENS = 2048

_WRAPPER_KEYS = ("ingredients", "items")

_logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    """Interface for chat completions against an OpenAI-compatible provider."""

    async def complete(
        self,
        provider: ResolvedProvider,
        messages: list[dict[str, object]],
        *,
        json_mode: bool,
        max_tokens: int,
    ) -> str:
        """Return the raw content of the first completion choice."""


class ProviderSource(Protocol):
    """Supplies the provider to call, failing when it is not configured."""

    def active_provider(self) -> ResolvedProvider:
        """Return the current provider with credentials."""


@dataclass
class AnalysisService:
    """Builds prompts, calls the gateway and normalizes the answers."""

    client: ChatClient
    providers: ProviderSource
    max_tokens: int = DEFAULT_MAX_TOKENS

    async def lookup_ingredient(self, name: str) -> NutrientProfile | None:
        """Return per-100g nutrients for a product name."""
        provider = self.providers.active_provider()
        raw = await self._complete(provider, _ingredient_prompt(name), json_mode=True)
        try:
            payload = extract_json(raw)
        except UnparsableResponseError:
            _logger.warning("Ingredient lookup for %s returned no JSON", name)
            return None
        return normalize_nutrients(payload)

    async def analyze_text(
        self, text: str, per_100g: bool = False
    ) -> list[Ingredient] | None:
        """Recognize the ingredients of a dish description."""
        if not text.strip():
            return None
        provider = self.providers.active_provider()
        raw = await self._complete(
            provider, _text_prompt(text, per_100g), json_mode=True
        )
        return _ingredients_from(raw)

    async def analyze_image(
        self, image_bytes: bytes, hint: str = "", per_100g: bool = False
    ) -> list[Ingredient] | None:
        """Recognize the ingredients visible on a food photo."""
        provider = self.providers.active_provider()
        content: list[dict[str, object]] = [
            {"type": "text", "text": _image_prompt(hint, per_100g)},
            {"type": "image_url", "image_url": {"url": _to_data_url(image_bytes)}},
        ]
        raw = await self.client.complete(
            provider,
            [{"role": "user", "content": content}],
            json_mode=True,
            max_tokens=self.max_tokens,
        )
        return _ingredients_from(raw)

    async def calculate_daily_goals(self, profile: UserProfile) -> DailyGoals:
        """Ask the model for daily intake targets for a profile."""
        provider = self.providers.active_provider()
        raw = await self._complete(
            provider,
            _goals_prompt(profile),
            json_mode=True,
            max_tokens=GOALS_MAX_TOKENS,
        )
        goals = normalize_daily_goals(extract_json(raw))
        _logger.info("Calculated daily goals: %s", goals.model_dump())
        return goals

    async def summarize_day(
        self, day: date | str, entry: DayEntry, goals: DailyGoals | None
    ) -> str:
        """Return a short free-text review of a day's intake."""
        provider = self.providers.active_provider()
        return await self._complete(
            provider, _summary_prompt(str(day), entry, goals), json_mode=False
        )

    async def _complete(
        self,
        provider: ResolvedProvider,
        prompt: str,
        *,
        json_mode: bool,
        max_tokens: int | None = None,
    ) -> str:
        return await self.client.complete(
            provider,
            [{"role": "user", "content": prompt}],
            json_mode=json_mode,
            max_tokens=max_tokens or self.max_tokens,
        )


def _ingredients_from(raw: str) -> list[Ingredient] | None:
    try:
        payload = extract_json_array(raw)
    except UnparsableResponseError:
        _logger.warning("Meal analysis returned no JSON")
        return None
    if isinstance(payload, dict):
        for key in _WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
    return normalize(payload)


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


_WEIGHT_RULES = """1. Если в тексте указан ОБЩИЙ вес блюда (например, "гуляш 200г"), распредели этот общий вес пропорционально между всеми определенными ингредиентами. Сумма весов всех ингредиентов должна быть равна указанному общему весу.
2. Если в тексте указаны КОНКРЕТНЫЕ веса для каждого ингредиента (например, "картофель 80г, мясо 70г"), используй именно эти веса.
3. Если вес не указан ни в каком виде, оцени вес каждого ингредиента самостоятельно."""  # noqa: E501

_HINT_WEIGHT_RULES = """1. Если в подсказке указан ОБЩИЙ вес блюда (например, "гуляш 200г"), распредели этот общий вес пропорционально между всеми ингредиентами, которые ты видишь на фото. Сумма весов всех ингредиентов должна быть равна указанному общему весу.
2. Если в подсказке указаны КОНКРЕТНЫЕ веса для каждого ингредиента (например, "картофель 80г, мясо 70г"), используй именно эти веса.
3. Если в подсказке вес не указан, оцени вес каждого ингредиента на фото самостоятельно."""  # noqa: E501

_FIXED_WEIGHT_RULE = (
    "Для КАЖДОГО определенного ингредиента установи вес РОВНО 100 грамм. "
    "Игнорируй любые упоминания веса в {source}. "
    "В поле 'weight' для каждого ингредиента должно быть число 100."
)

_ARRAY_ANSWER = (
    "Ответ дай только в формате JSON в виде массива объектов. "
    "Важно: название каждого ингредиента в поле 'name' должно быть на русском языке."
)

_TEXT_EXAMPLE = """Пример для запроса "салат с курицей 150г":
[
  {"name": "куриное филе", "calories": 165, "protein": 31, "fat": 3.6, "carbohydrate": 0, "fiber": 0, "weight": 80},
  {"name": "листья салата", "calories": 15, "protein": 1.4, "fat": 0.2, "carbohydrate": 2.9, "fiber": 1.3, "weight": 70}
]"""  # noqa: E501

_IMAGE_EXAMPLE = """Пример ответа:
[
  {"name": "яичница", "calories": 155, "protein": 13, "fat": 11, "carbohydrate": 1.1, "fiber": 0, "weight": 120},
  {"name": "помидор", "calories": 18, "protein": 0.9, "fat": 0.2, "carbohydrate": 3.9, "fiber": 1.2, "weight": 50}
]"""  # noqa: E501


def _ingredient_prompt(name: str) -> str:
    return (
        "Предоставь точное КБЖУК (калории, белки, жиры, углеводы, клетчатка) "
        f"на 100 грамм для продукта '{name}'.\n"
        "Ответ дай только в формате JSON. В значениях должны быть только цифры.\n\n"
        'Пример для запроса "яблоко":\n'
        '{"calories": 52, "protein": 0.3, "fat": 0.2, "carbohydrate": 14, '
        '"fiber": 2.4}'
    )


def _text_prompt(text: str, per_100g: bool) -> str:
    if per_100g:
        weight_instruction = _FIXED_WEIGHT_RULE.format(source="тексте")
    else:
        weight_instruction = (
            "Определи вес каждого ингредиента в граммах, следуя правилам:\n"
            + _WEIGHT_RULES
        )
    return (
        f'Проанализируй этот текст с описанием блюда: "{text}".\n'
        "Определи все ингредиенты и для каждого предоставь КБЖУК "
        "(калории, белки, жиры, углеводы, клетчатка) на 100 грамм.\n"
        f"{weight_instruction}\n"
        f"{_ARRAY_ANSWER}\n\n"
        f"{_TEXT_EXAMPLE}"
    )


def _image_prompt(hint: str, per_100g: bool) -> str:
    prompt = (
        "Проанализируй это изображение блюда и определи все ингредиенты. "
        "Для каждого ингредиента предоставь КБЖУК "
        "(калории, белки, жиры, углеводы, клетчатка) на 100 грамм."
    )
    if per_100g:
        prompt += "\n\n" + _FIXED_WEIGHT_RULE.format(source="подсказке пользователя")
    elif hint.strip():
        prompt += (
            f'\n\nПользователь предоставил следующую подсказку: "{hint.strip()}".'
            "\n\nИспользуй подсказку для определения веса каждого ингредиента "
            "в граммах, следуя этим правилам:\n" + _HINT_WEIGHT_RULES
        )
    else:
        prompt += (
            "\n\nОцени вес каждого ингредиента в граммах самостоятельно, "
            "исходя из изображения."
        )
    return f"{prompt}\n\n{_ARRAY_ANSWER}\n\n{_IMAGE_EXAMPLE}"


def _goals_prompt(profile: UserProfile) -> str:
    gender = "мужской" if profile.gender == "male" else "женский"
    activity = activity_level_label(profile.activity_level).lower()
    goal = goal_label(profile.goal).lower()
    return f"""Рассчитай дневные нормы питания для человека со следующими данными:
- Пол: {gender}
- Возраст: {_format_number(profile.age)} лет
- Вес: {_format_number(profile.weight)} кг
- Рост: {_format_number(profile.height)} см
- Уровень активности: {activity}
- Цель: {goal}

ВАЖНО: Ответь СТРОГО в формате JSON без дополнительного текста, объяснений или markdown форматирования. Верни только чистый JSON объект.

Рассчитай:
1. BMR (основной обмен) - формула Миффлина-Сан Жеора
2. TDEE (общий расход с учетом активности)
3. targetCalories (целевая калорийность: похудение -15-20% от TDEE, набор +10-15%, поддержание = TDEE)
4. protein (белки г: 1.6-2.2 г/кг для похудения/набора, 1.2-1.6 г/кг поддержание)
5. fat (жиры г: 25-30% от targetCalories, 1г = 9 ккал)
6. carbohydrate (углеводы г: остаток калорий, 1г = 4 ккал)
7. fiber (клетчатка г: 25-30 для женщин, 30-38 для мужчин)

Формат ответа (только JSON, ничего более):
{{"bmr": 1650, "tdee": 2280, "targetCalories": 1824, "protein": 130, "fat": 60, "carbohydrate": 180, "fiber": 30}}"""  # noqa: E501


def _summary_prompt(day: str, entry: DayEntry, goals: DailyGoals | None) -> str:
    lines = [f"Проанализируй мой дневной рацион питания за {day}.", ""]
    if goals is not None:
        lines += [
            "МОИ ЦЕЛИ:",
            f"- Целевые калории: {_format_number(goals.target_calories)} ккал",
            f"- Белки: {_format_number(goals.protein)}г",
            f"- Жиры: {_format_number(goals.fat)}г",
            f"- Углеводы: {_format_number(goals.carbohydrate)}г",
            f"- Клетчатка: {_format_number(goals.fiber)}г",
            "",
        ]
    totals = entry.daily_totals
    lines += [
        "МОЕ ФАКТИЧЕСКОЕ ПОТРЕБЛЕНИЕ:",
        f"- Калории: {round_half_up(totals.calories)} ккал",
        f"- Белки: {totals.protein:.1f}г",
        f"- Жиры: {totals.fat:.1f}г",
        f"- Углеводы: {totals.carbohydrate:.1f}г",
        f"- Клетчатка: {totals.fiber:.1f}г",
        "",
        "МОЙ РАЦИОН:",
    ]
    for index, meal in enumerate(entry.meals.values(), start=1):
        lines.append(f"{index}. {meal.type.label}:")
        for ingredient in meal.ingredients:
            calories = round_half_up(
                ingredient.base_cpfc.calories * ingredient.weight / 100
            )
            lines.append(
                f"   - {ingredient.name} ({_format_number(ingredient.weight)}г) "
                f"- {calories} ккал"
            )
    lines += [
        "",
        "Дай краткий и понятный анализ (максимум 150-200 слов):",
        "1. Что было хорошо в моем питании?",
        "2. Что можно улучшить?",
        "3. Как скорректировать питание завтра, чтобы лучше соответствовать "
        "моим целям?",
        "",
        "Ответ должен быть дружелюбным, мотивирующим и конкретным. "
        "Формат ответа - обычный текст, не JSON.",
    ]
    return "\n".join(lines)


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)
