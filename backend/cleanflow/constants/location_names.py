"""Abbreviations used by the hospital bed-management system."""

COMMON_NAMES = {
    'QTO': 'Quarto',
    'QUARTO': 'Quarto',
    'APTO': 'Apartamento',
    'APT': 'Apartamento',
    'LEITO': 'Leito',
    'LT': 'Leito',
    'SL': 'Sala',
    'SALA': 'Sala',
    'CX': 'Caixa',
    'BOX': 'Box',
    'UTI': 'UTI',
    'SPA': 'SPA',
    'LBX': 'Laboratório',
}

DEFAULT_NAME = 'Leito'


def map_common_name(abbreviation: str) -> str:
    return COMMON_NAMES.get(abbreviation.upper(), abbreviation)
