import pytest

from cleanflow.schemas.integration import StatusMappings
from cleanflow.services.status_mapper import map_status

MAPPINGS = StatusMappings(available='L', occupied='*', in_cleaning='H')


@pytest.mark.parametrize("token, expected", [
    ('L', 'available'),
    ('  L ', 'available'),
    ('*', 'occupied'),
    ('\t*\n', 'occupied'),
    ('H', 'in_cleaning'),
])
def test_mapped_tokens(token, expected):
    assert map_status(token, MAPPINGS) == expected


@pytest.mark.parametrize("token", ['Z', 'l', '', None, 'LL'])
def test_unmapped_tokens_return_none(token):
    assert map_status(token, MAPPINGS) is None


def test_in_cleaning_is_optional():
    mappings = StatusMappings(available='L', occupied='*')
    assert map_status('H', mappings) is None
    # An empty token never matches the unset in_cleaning mapping
    assert map_status('', mappings) is None
