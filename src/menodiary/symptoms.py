from __future__ import annotations

from dataclasses import dataclass

CATEGORIES = ("physical", "emotional", "intimate")


@dataclass(frozen=True)
class Symptom:
    id: str
    name: str
    category: str


SYMPTOMS: tuple[Symptom, ...] = (
    Symptom("hot_flash", "Hot flashes", "physical"),
    Symptom("insomnia", "Insomnia", "physical"),
    Symptom("fatigue", "Extreme fatigue", "physical"),
    Symptom("headache", "Headache", "physical"),
    Symptom("bloating", "Bloating", "physical"),
    Symptom("joint_pain", "Joint pain", "physical"),
    Symptom("palpitations", "Palpitations", "physical"),
    Symptom("night_sweats", "Night sweats", "physical"),
    Symptom("dry_skin_mouth", "Dry skin/mouth", "physical"),
    Symptom("hair_loss", "Hair loss", "physical"),
    Symptom("tinnitus", "Tinnitus", "physical"),
    Symptom("tingling", "Tingling hands/feet", "physical"),
    Symptom("anxiety", "Anxiety", "emotional"),
    Symptom("irritability", "Irritability", "emotional"),
    Symptom("brain_fog", "Brain fog", "emotional"),
    Symptom("sadness", "Sadness/low mood", "emotional"),
    Symptom("mood_swings", "Mood swings", "emotional"),
    Symptom("dryness", "Vaginal dryness", "intimate"),
    Symptom("low_libido", "Low libido", "intimate"),
    Symptom("pain_sex", "Pain during sex", "intimate"),
)

_BY_ID = {s.id: s for s in SYMPTOMS}

# one-tap symptoms on the home screen
QUICK_SYMPTOMS = ("hot_flash", "palpitations", "anxiety", "headache")


def is_known(symptom_id: str) -> bool:
    return symptom_id in _BY_ID


def symptom_name(symptom_id: str) -> str:
    s = _BY_ID.get(symptom_id)
    return s.name if s else symptom_id


def by_category(category: str) -> list[Symptom]:
    return [s for s in SYMPTOMS if s.category == category]
