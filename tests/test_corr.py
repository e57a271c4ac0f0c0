"""
Tests for the correlation module.
"""

import pytest
import numpy as np
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from quadmath.math import corr
from quadmath.math.corr import (
    LOW_LOW, LOW_HIGH, HIGH_LOW, HIGH_HIGH,
    pearson_correlation, quadrant_counts, question_pair_correlation,
    significant_correlations, strength_word, direction_labels,
    describe_correlation, find_interesting_correlation
)
from quadmath.math.named_matrix import response_matrix
from quadmath.models import Player, Question, Response


class StubRng:
    """Randomness source that always picks the same shortlist slot."""

    def __init__(self, pick=0):
        self.pick = pick
        self.calls = []

    def integers(self, n):
        self.calls.append(n)
        return self.pick


QUESTIONS = [
    Question(id='q1', prompt='Pets?', label_left='Cats', label_right='Dogs', order=0),
    Question(id='q2', prompt='Drinks?', label_left='Tea', label_right='Coffee', order=1),
    Question(id='q3', prompt='Mornings?', label_left='Early', label_right='Late', order=2),
]


def make_players(n):
    return [Player(id=f'p{i}', name=f'Player {i}') for i in range(1, n + 1)]


def make_responses(table):
    """Build responses from {player id: {question id: value}}."""
    return [
        Response(player_id=pid, question_id=qid, value=value)
        for pid, answers in table.items()
        for qid, value in answers.items()
    ]


@pytest.fixture
def moving_together():
    """Five players whose q1 and q2 answers rise together; q3 is noise."""
    table = {
        'p1': {'q1': 2, 'q2': 2, 'q3': 1},
        'p2': {'q1': 3, 'q2': 3, 'q3': 10},
        'p3': {'q1': 1, 'q2': 2, 'q3': 10},
        'p4': {'q1': 4, 'q2': 3, 'q3': 1},
        'p5': {'q1': 9, 'q2': 8, 'q3': 5},
    }
    return make_players(5), make_responses(table)


class TestPearson:
    """Tests for pearson_correlation."""
    
    def test_perfect(self):
        """Test perfectly correlated and anti-correlated inputs."""
        assert pearson_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        assert pearson_correlation([1, 2, 3], [6, 4, 2]) == pytest.approx(-1.0)
    
    def test_constant(self):
        """Test that constant input gives 0."""
        assert pearson_correlation([5, 5, 5], [1, 2, 3]) == 0
        assert pearson_correlation([1, 2, 3], [7, 7, 7]) == 0
    
    def test_empty(self):
        """Test that empty input gives 0."""
        assert pearson_correlation([], []) == 0
    
    def test_bounded(self):
        """Test that the coefficient stays within [-1, 1]."""
        rng = np.random.default_rng(7)
        for _ in range(20):
            x = rng.uniform(1, 10, size=6)
            y = rng.uniform(1, 10, size=6)
            r = pearson_correlation(x, y)
            assert -1 <= r <= 1
    
    def test_length_mismatch(self):
        """Test that lists of different length are rejected."""
        with pytest.raises(ValueError):
            pearson_correlation([1, 2, 3], [1, 2])


class TestQuadrants:
    """Tests for quadrant counting and labelling."""
    
    def test_center_counts_as_low(self):
        """Test that the midpoint itself is low."""
        counts = quadrant_counts(np.array([5.5, 6, 1, 10]), np.array([5.5, 1, 10, 10]))
        
        assert counts == {LOW_LOW: 1, LOW_HIGH: 1, HIGH_LOW: 1, HIGH_HIGH: 1}
    
    def test_strength_word(self):
        """Test the strength adverbs and their boundaries."""
        assert strength_word(0.9) == 'strongly'
        assert strength_word(-0.71) == 'strongly'
        assert strength_word(0.7) == 'moderately'
        assert strength_word(-0.5) == 'moderately'
        assert strength_word(0.4) == 'slightly'
        assert strength_word(0.3) == 'slightly'
    
    def test_positive_labels(self):
        """Test labels for a positive correlation."""
        q1, q2 = QUESTIONS[0], QUESTIONS[1]
        
        low = {LOW_LOW: 4, LOW_HIGH: 0, HIGH_LOW: 0, HIGH_HIGH: 1}
        high = {LOW_LOW: 1, LOW_HIGH: 0, HIGH_LOW: 0, HIGH_HIGH: 4}
        tie = {LOW_LOW: 2, LOW_HIGH: 0, HIGH_LOW: 0, HIGH_HIGH: 2}
        
        assert direction_labels(q1, q2, 0.8, low) == ('Cats', 'Tea')
        assert direction_labels(q1, q2, 0.8, high) == ('Dogs', 'Coffee')
        assert direction_labels(q1, q2, 0.8, tie) == ('Dogs', 'Coffee')
    
    def test_negative_labels(self):
        """Test labels for a negative correlation."""
        q1, q2 = QUESTIONS[0], QUESTIONS[1]
        
        low_high = {LOW_LOW: 0, LOW_HIGH: 3, HIGH_LOW: 2, HIGH_HIGH: 0}
        high_low = {LOW_LOW: 0, LOW_HIGH: 1, HIGH_LOW: 3, HIGH_HIGH: 0}
        
        assert direction_labels(q1, q2, -0.8, low_high) == ('Cats', 'Coffee')
        assert direction_labels(q1, q2, -0.8, high_low) == ('Dogs', 'Tea')
        # A zero coefficient is treated as negative
        assert direction_labels(q1, q2, 0.0, high_low) == ('Dogs', 'Tea')
    
    def test_sentence(self):
        """Test rendering the finding as a sentence."""
        counts = {LOW_LOW: 4, LOW_HIGH: 0, HIGH_LOW: 0, HIGH_HIGH: 1}
        
        sentence = describe_correlation(QUESTIONS[0], QUESTIONS[1], 0.5, counts)
        
        assert sentence == 'People who prefer "Cats" moderately tend to prefer "Tea"'


class TestPairCorrelations:
    """Tests for per-pair correlation over the response matrix."""
    
    def test_only_players_who_answered_both(self):
        """Test that players missing either question are left out."""
        table = {
            'p1': {'q1': 1, 'q2': 1},
            'p2': {'q1': 10, 'q2': 10},
            'p3': {'q1': 10},
            'p4': {'q2': 1},
        }
        nmat = response_matrix(['p1', 'p2', 'p3', 'p4'], ['q1', 'q2'], make_responses(table))
        
        result = question_pair_correlation(nmat, 'q1', 'q2')
        
        assert result.n_players == 2
        assert result.coefficient == pytest.approx(1.0)
        assert result.quadrants[LOW_LOW] == 1
        assert result.quadrants[HIGH_HIGH] == 1
    
    def test_too_few_players(self):
        """Test that one shared answer is not enough."""
        table = {'p1': {'q1': 1, 'q2': 1}, 'p2': {'q1': 10}}
        nmat = response_matrix(['p1', 'p2'], ['q1', 'q2'], make_responses(table))
        
        assert question_pair_correlation(nmat, 'q1', 'q2') is None
    
    def test_threshold_and_exclusion(self, moving_together):
        """Test the significance filter and the unordered exclusion."""
        players, responses = moving_together
        nmat = response_matrix([p.id for p in players], ['q1', 'q2', 'q3'], responses)
        
        results = significant_correlations(nmat, ['q1', 'q2', 'q3'])
        assert [r.question_ids for r in results] == [('q1', 'q2')]
        
        assert significant_correlations(nmat, ['q1', 'q2', 'q3'], exclude_pair=('q2', 'q1')) == []
    
    def test_sorted_by_strength(self):
        """Test that results are sorted by |r| descending."""
        table = {
            'p1': {'q1': 1, 'q2': 1, 'q3': 10},
            'p2': {'q1': 2, 'q2': 3, 'q3': 8},
            'p3': {'q1': 3, 'q2': 2, 'q3': 9},
            'p4': {'q1': 4, 'q2': 4, 'q3': 7},
        }
        nmat = response_matrix(['p1', 'p2', 'p3', 'p4'], ['q1', 'q2', 'q3'], make_responses(table))
        
        results = significant_correlations(nmat, ['q1', 'q2', 'q3'])
        magnitudes = [abs(r.coefficient) for r in results]
        
        assert magnitudes == sorted(magnitudes, reverse=True)


class TestFindInterestingCorrelation:
    """Tests for find_interesting_correlation."""
    
    def test_moving_together(self, moving_together):
        """Test that answers rising together give a low-pole finding."""
        players, responses = moving_together
        
        finding = find_interesting_correlation(QUESTIONS, players, responses, rng=StubRng())
        
        assert finding is not None
        assert finding.question_ids == ('q1', 'q2')
        assert finding.coefficient > 0.25
        assert finding.quadrants[LOW_LOW] == 4
        assert finding.description == 'People who prefer "Cats" strongly tend to prefer "Tea"'
    
    def test_negative_finding(self):
        """Test labels for answers moving in opposite directions."""
        table = {
            'p1': {'q1': 1, 'q3': 10},
            'p2': {'q1': 2, 'q3': 9},
            'p3': {'q1': 3, 'q3': 8},
            'p4': {'q1': 9, 'q3': 2},
            'p5': {'q1': 10, 'q3': 1},
        }
        
        finding = find_interesting_correlation(QUESTIONS, make_players(5),
                                               make_responses(table), rng=StubRng())
        
        assert finding.question_ids == ('q1', 'q3')
        assert finding.coefficient < 0
        assert finding.description == 'People who prefer "Cats" strongly tend to prefer "Late"'
    
    def test_nothing_notable(self):
        """Test that uncorrelated answers give None."""
        table = {
            'p1': {'q1': 1, 'q2': 5},
            'p2': {'q1': 2, 'q2': 1},
            'p3': {'q1': 3, 'q2': 1},
            'p4': {'q1': 4, 'q2': 5},
        }
        
        assert find_interesting_correlation(QUESTIONS, make_players(4),
                                            make_responses(table), rng=StubRng()) is None
    
    def test_excluded_pair_nothing_notable(self, monkeypatch):
        """Test that a failed retry gives None after exactly one more search."""
        table = {
            'p1': {'q1': 1, 'q2': 5},
            'p2': {'q1': 2, 'q2': 1},
            'p3': {'q1': 3, 'q2': 1},
            'p4': {'q1': 4, 'q2': 5},
        }
        searches = []
        real_search = corr.significant_correlations
        
        def counting_search(*args, **kwargs):
            searches.append(args[2] if len(args) > 2 else kwargs.get('exclude_pair'))
            return real_search(*args, **kwargs)
        
        monkeypatch.setattr(corr, 'significant_correlations', counting_search)
        
        finding = find_interesting_correlation(QUESTIONS, make_players(4), make_responses(table),
                                               exclude_pair=('q1', 'q2'), rng=StubRng())
        
        assert finding is None
        assert searches == [('q1', 'q2'), None]
    
    def test_no_data(self):
        """Test degenerate inputs."""
        assert find_interesting_correlation(QUESTIONS, [], [], rng=StubRng()) is None
        assert find_interesting_correlation([], make_players(2), [], rng=StubRng()) is None
    
    def test_excluded_pair_repeats_when_alone(self, moving_together):
        """Test the single retry without the excluded pair."""
        players, responses = moving_together
        
        finding = find_interesting_correlation(QUESTIONS, players, responses,
                                               exclude_pair=('q2', 'q1'), rng=StubRng())
        
        assert finding.question_ids == ('q1', 'q2')
    
    def test_ignores_players_off_roster(self, moving_together):
        """Test that only roster players count."""
        players, responses = moving_together
        
        finding = find_interesting_correlation(QUESTIONS, players[:1], responses, rng=StubRng())
        
        assert finding is None
    
    def test_shortlist(self):
        """Test that the pick is drawn from the top three candidates."""
        questions = QUESTIONS + [
            Question(id='q4', prompt='Seasons?', label_left='Winter', label_right='Summer', order=3)
        ]
        table = {
            f'p{i}': {q.id: i for q in questions}
            for i in range(1, 6)
        }
        rng = StubRng(pick=2)
        
        finding = find_interesting_correlation(questions, make_players(5),
                                               make_responses(table), rng=rng)
        
        # Six pairs tie at r=1, so quiz order decides the shortlist
        assert rng.calls == [3]
        assert finding.question_ids == ('q1', 'q4')
    
    def test_pinned_randomness(self, moving_together):
        """Test that the same seed gives the same finding."""
        players, responses = moving_together
        
        first = find_interesting_correlation(QUESTIONS, players, responses,
                                             rng=np.random.default_rng(3))
        second = find_interesting_correlation(QUESTIONS, players, responses,
                                              rng=np.random.default_rng(3))
        
        assert first == second
