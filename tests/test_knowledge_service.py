import json

import pytest

from conftest import FakeGenerationClient
from study_companion.errors import ConfigurationError, GenerationError
from study_companion.services import knowledge_service

SYLLABUS = (
    "Organic Chemistry\n\n"
    "Alkanes and alkenes: nomenclature, isomerism and reactions of saturated hydrocarbons.\n\n"
    "Aromatic compounds: benzene structure, resonance and electrophilic substitution."
)


def test_explain_subtopic_returns_stripped_text():
    client = FakeGenerationClient(['  Resonance spreads **electron density**.  '])

    explanation = knowledge_service.explain_subtopic('Resonance', SYLLABUS, generation_client=client)

    assert explanation == 'Resonance spreads **electron density**.'
    assert 'Resonance' in client.prompts[0]
    assert 'benzene structure' in client.prompts[0]


def test_knowledge_tree_is_sanitized():
    tree = {
        'name': 'Organic Chemistry',
        'extra': 'dropped',
        'children': [
            {'name': 'Alkanes', 'children': [{'name': 'Isomerism'}, {'name': ''}]},
            'not a node',
            {'name': 'Aromatics', 'children': []},
        ],
    }
    client = FakeGenerationClient(['Tree:\n' + json.dumps(tree)])

    result = knowledge_service.generate_knowledge_tree(SYLLABUS, generation_client=client)

    assert result == {
        'name': 'Organic Chemistry',
        'children': [
            {'name': 'Alkanes', 'children': [{'name': 'Isomerism'}]},
            {'name': 'Aromatics'},
        ],
    }


@pytest.mark.parametrize('reply', ['no tree here', GenerationError('Generation failed'), '{"children": []}'])
def test_unusable_tree_falls_back_to_syllabus_outline(reply):
    client = FakeGenerationClient([reply])

    result = knowledge_service.generate_knowledge_tree(SYLLABUS, generation_client=client)

    assert result['name'] == 'Organic Chemistry'
    assert [child['name'] for child in result['children']] == [
        'Alkanes and alkenes: nomenclature, isomerism and reactions of saturated hydrocarbons.',
        'Aromatic compounds: benzene structure, resonance and electrophilic substitution.',
    ]


def test_knowledge_tree_requires_configuration():
    with pytest.raises(ConfigurationError):
        knowledge_service.generate_knowledge_tree(SYLLABUS, generation_client=FakeGenerationClient(configured=False))


def test_sanitize_tree_limits_depth():
    node = {'name': 'leaf'}
    for level in range(10):
        node = {'name': f"level-{level}", 'children': [node]}

    cleaned = knowledge_service.sanitize_tree(node)

    depth = 0
    while 'children' in cleaned:
        cleaned = cleaned['children'][0]
        depth += 1
    assert depth == knowledge_service.MAX_TREE_DEPTH
