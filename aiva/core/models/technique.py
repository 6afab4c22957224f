from dataclasses import dataclass

DEFAULT_TECHNIQUE_TITLE = "Personalized Technique Recommendation"


@dataclass(frozen=True, slots=True)
class Technique:
    title:       str
    description: str

    def as_dict(self) -> dict[str, str]:
        return {"title": self.title, "description": self.description}

    def __str__(self) -> str:
        return f"{self.title}\n{self.description}"
