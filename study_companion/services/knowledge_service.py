"""Subtopic explanations and the knowledge-tree variant of the breakdown."""

import logging

from study_companion.errors import ConfigurationError, GenerationError
from study_companion.services import prompt_registry, response_normalizer
from study_companion.services.json_extraction import parse_json_object

logger = logging.getLogger('study_companion.knowledge')

MAX_TREE_DEPTH = 6
MAX_NODE_NAME_LEN = 200


def explain_subtopic(subtopic_name, syllabus_text, *, generation_client):
    prompt = prompt_registry.build_subtopic_prompt(subtopic_name, syllabus_text)
    text = generation_client.generate_text(prompt)
    return (text or '').strip()


def sanitize_tree(node, depth=0):
    """Keep only ``name``/``children`` keys; drop nodes without a name."""
    if not isinstance(node, dict) or depth > MAX_TREE_DEPTH:
        return None
    name = str(node.get('name', '') or '').strip()[:MAX_NODE_NAME_LEN]
    if not name:
        return None
    cleaned = {'name': name}
    children = node.get('children')
    if isinstance(children, list):
        kept = [child for child in (sanitize_tree(item, depth + 1) for item in children) if child]
        if kept:
            cleaned['children'] = kept
    return cleaned


def fallback_tree(syllabus_text):
    chapters = response_normalizer.build_fallback_chapters(syllabus_text)
    first_line = (syllabus_text or '').strip().split('\n')[0].strip()[:MAX_NODE_NAME_LEN]
    return {
        'name': first_line or 'Syllabus',
        'children': [{'name': chapter['title'][:MAX_NODE_NAME_LEN]} for chapter in chapters],
    }


def generate_knowledge_tree(syllabus_text, *, generation_client):
    if not generation_client.configured:
        raise ConfigurationError('Gemini API key not set')
    prompt = prompt_registry.build_knowledge_tree_prompt(syllabus_text)
    try:
        raw_text = generation_client.generate_text(prompt)
    except GenerationError as exc:
        logger.warning(f"Knowledge tree generation failed, using fallback tree: {exc}")
        return fallback_tree(syllabus_text)
    tree = sanitize_tree(parse_json_object(raw_text))
    if tree is None:
        logger.info('Knowledge tree output unusable; using fallback tree')
        return fallback_tree(syllabus_text)
    return tree
