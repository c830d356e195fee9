"""
Unit tests for Taxonomy and TagSet

Tests taxonomy loading, quarantine partitioning and merge algebra
"""

import json
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fir_assistant.core.taxonomy import Taxonomy, get_default_taxonomy
from fir_assistant.core.tag_set import TagSet


# ========================
# Taxonomy
# ========================

def test_default_taxonomy_has_seven_categories():
    taxonomy = get_default_taxonomy()

    assert taxonomy.categories == (
        'intent', 'method', 'location', 'time',
        'victim_context', 'offender_attribute', 'event_condition'
    )
    assert taxonomy.jurisdiction == 'IN'
    assert taxonomy.is_valid_tag('location', 'house')
    assert not taxonomy.is_valid_tag('location', 'night_time')
    assert not taxonomy.is_valid_tag('weather', 'rain')


def test_permitted_tags_keep_file_order():
    taxonomy = get_default_taxonomy()

    assert taxonomy.permitted_tags('time')[:2] == ('night_time', 'sunset_to_sunrise')
    assert taxonomy.permitted_tags('unknown') == ()


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Taxonomy.load(str(tmp_path / 'missing.json'))


def test_load_without_categories_raises(tmp_path):
    path = tmp_path / 'bad.json'
    path.write_text(json.dumps({'jurisdiction': 'XX'}))

    with pytest.raises(ValueError):
        Taxonomy.load(str(path))


def test_custom_taxonomy_file(tmp_path):
    path = tmp_path / 'small.json'
    path.write_text(json.dumps({
        'jurisdiction': 'XX',
        'version': '0.1',
        'categories': {'intent': ['a', 'b', 'a']}
    }))

    taxonomy = Taxonomy.load(str(path))

    assert taxonomy.categories == ('intent',)
    assert taxonomy.permitted_tags('intent') == ('a', 'b')
    assert 'intent' in taxonomy


def test_empty_taxonomy_rejected():
    with pytest.raises(ValueError):
        Taxonomy({})


# ========================
# TagSet
# ========================

def test_from_raw_quarantines_unknown_tags():
    taxonomy = get_default_taxonomy()

    tags = TagSet.from_raw({
        'location': ['house', 'spaceship'],
        'weather': ['rain'],
    }, taxonomy)

    assert tags.get('location') == frozenset({'house'})
    assert tags.quarantined == {
        'location': frozenset({'spaceship'}),
        'weather': frozenset({'rain'}),
    }
    assert tags.quarantined_count == 2
    assert tags.count() == 1
    assert not tags.has('weather', 'rain')


def test_absent_category_is_empty():
    tags = TagSet({'intent': [], 'time': ['night_time']})

    assert tags.get('intent') == frozenset()
    assert tags.categories == ('time',)
    assert TagSet().is_empty()


def test_merge_is_union():
    a = TagSet({'location': ['house'], 'time': ['night_time']})
    b = TagSet({'location': ['residence'], 'intent': ['dishonest_intent_to_take']})

    merged = a.merge(b)

    assert merged.get('location') == frozenset({'house', 'residence'})
    assert merged.has('time', 'night_time')
    assert merged.has('intent', 'dishonest_intent_to_take')
    assert merged.issuperset(a)
    assert merged.issuperset(b)


def test_merge_algebra():
    a = TagSet({'location': ['house']})
    b = TagSet({'time': ['night_time']}, quarantined={'time': ['dusk']})
    c = TagSet({'location': ['residence'], 'method': ['force']})

    assert a.merge(b) == b.merge(a)
    assert a.merge(b).merge(c) == a.merge(b.merge(c))
    assert a.merge(a) == a
    assert (a | TagSet()) == a


def test_merge_never_removes_tags():
    accumulated = TagSet({'location': ['house'], 'time': ['night_time']})

    accumulated = accumulated.merge(TagSet())
    accumulated = accumulated.merge(TagSet({'location': ['vehicle']}))

    assert accumulated.has('location', 'house')
    assert accumulated.has('time', 'night_time')


def test_ordered_follows_taxonomy():
    taxonomy = get_default_taxonomy()
    tags = TagSet({'location': ['residence', 'house']})

    assert tags.ordered('location', taxonomy) == ['house', 'residence']


def test_to_dict_with_taxonomy_lists_every_category():
    taxonomy = get_default_taxonomy()
    tags = TagSet({'time': ['sunset_to_sunrise', 'night_time']})

    data = tags.to_dict(taxonomy)

    assert list(data) == list(taxonomy.categories)
    assert data['time'] == ['night_time', 'sunset_to_sunrise']
    assert data['intent'] == []
