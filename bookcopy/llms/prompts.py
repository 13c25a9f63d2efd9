# =============================================================================
# bookcopy/llms/prompts.py — Generation types and per-type prompt templates
# =============================================================================
# Templates are written in the language of the end users (Italian). The source
# text is appended verbatim after the instruction clause. The categories
# template asks the model for {"main": str, "sub": [str]} JSON; nothing here
# parses it.
# =============================================================================

from enum import Enum

from bookcopy.core.errors import InvalidGenerationType


class GenerationType(str, Enum):
    BLURB = "blurb"
    DESCRIPTION = "description"
    KEYWORDS = "keywords"
    CATEGORIES = "categories"
    FOREWORD = "foreword"
    ANALYSIS = "analysis"


SYSTEM_PROMPT = "Sei un assistente esperto nella generazione di contenuti per libri in italiano."

CATEGORIES_JSON_INSTRUCTION = (
    'Rispondi in formato JSON con "main" per la categoria principale '
    'e "sub" come array per le sottocategorie.'
)

PROMPT_TEMPLATES: dict[GenerationType, str] = {
    GenerationType.BLURB: (
        "Genera un testo accattivante per la copertina posteriore del libro "
        "basandoti sul seguente contenuto:\n\n{text}"
    ),
    GenerationType.DESCRIPTION: (
        "Genera una descrizione convincente per la pagina prodotto di un libro "
        "(ad esempio, su Amazon) basata sul seguente contenuto:\n\n{text}"
    ),
    GenerationType.KEYWORDS: (
        "Genera un insieme di parole chiave rilevanti per il libro "
        "basato sul seguente contenuto:\n\n{text}"
    ),
    GenerationType.CATEGORIES: (
        "Assegna una categoria principale e due sottocategorie per il libro dal catalogo, "
        "basandoti sul seguente contenuto:\n\n{text}\n\n" + CATEGORIES_JSON_INSTRUCTION
    ),
    GenerationType.FOREWORD: (
        "Genera un prologo coinvolgente per il libro "
        "basandoti sul seguente contenuto:\n\n{text}"
    ),
    GenerationType.ANALYSIS: (
        "Fornisci un'analisi approfondita del libro "
        "basandoti sul seguente contenuto:\n\n{text}"
    ),
}


def parse_generation_type(value: GenerationType | str) -> GenerationType:
    if isinstance(value, GenerationType):
        return value
    if isinstance(value, str):
        try:
            return GenerationType(value)
        except ValueError:
            pass
    raise InvalidGenerationType(value)


def build_prompt(generation_type: GenerationType | str, source_text: str) -> str:
    gen_type = parse_generation_type(generation_type)
    # str.format would choke on braces inside the manuscript
    return PROMPT_TEMPLATES[gen_type].replace("{text}", source_text)
