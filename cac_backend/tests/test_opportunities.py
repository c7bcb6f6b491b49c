"""
Optimization Opportunity Test Module

Builds ChannelStats directly so each rule can be triggered in isolation.
"""

import pytest
from pydantic import ValidationError

from cac_backend.models.enums import OpportunityType, Priority
from cac_backend.models.schemas import ChannelStats, Opportunity
from cac_backend.services.channel_performance import (
    compare_to_benchmark,
    get_benchmark,
    grade_for_score,
)
from cac_backend.services.opportunities import (
    channel_opportunities,
    identify_optimization_opportunities,
    rank_channels,
    sort_by_priority,
)


def make_stats(
    score: int = 80,
    avg_daily_spend: float = 100.0,
    ctr: float = 3.0,
    cvr: float = 5.0,
    cac: float = 50.0,
    roas: float = 3.0,
    clicks: float = 1000.0,
    customers: float = 50.0,
    channel: str = 'Google Ads',
) -> ChannelStats:
    """ChannelStats with a healthy Google Ads profile unless overridden."""
    return ChannelStats(
        spend=avg_daily_spend * 10,
        customers=customers,
        clicks=clicks,
        impressions=clicks * 100 / ctr if ctr else 0.0,
        revenue=avg_daily_spend * 10 * roas,
        days=10,
        campaigns=1,
        cac=cac,
        ctr=ctr,
        cvr=cvr,
        cpc=1.0,
        roas=roas,
        avgDailySpend=avg_daily_spend,
        costPerImpression=10.0,
        benchmark=compare_to_benchmark(ctr, cvr, cac, get_benchmark(channel)),
        efficiencyScore=score,
        grade=grade_for_score(score),
        avgRevenuePerCustomer=120.0,
        ltv=120.0,
        ltvCacRatio=2.4,
    )


# =============================================================================
# Test Class: TestChannelRules
# =============================================================================

class TestChannelRules:

    def test_healthy_channel_has_no_opportunities(self):
        assert channel_opportunities('Google Ads', make_stats(), 'Google Ads') == []

    def test_low_score_budget_reallocation(self):
        stats = make_stats(score=40, avg_daily_spend=150, cac=120)
        [opp] = channel_opportunities('Google Ads', stats, 'Facebook')

        assert opp.type == OpportunityType.BUDGET_REALLOCATION
        assert opp.priority == Priority.HIGH
        assert opp.issue == 'Low efficiency in Google Ads (Score: 40/100)'
        assert opp.recommendation == 'Reduce daily budget by $45 and reallocate to Facebook'
        assert opp.budgetMove.from_ == 'Google Ads'
        assert opp.budgetMove.to == 'Facebook'
        assert opp.budgetMove.amount == 45
        assert opp.metrics.currentCAC == pytest.approx(120.0)
        assert opp.metrics.targetCAC == pytest.approx(84.0)
        assert opp.metrics.expectedROI == 540

    def test_score_of_fifty_is_not_low(self):
        assert channel_opportunities('Google Ads', make_stats(score=50), 'Google Ads') == []

    def test_ctr_far_below_benchmark_is_high_priority(self):
        [opp] = channel_opportunities('Google Ads', make_stats(ctr=1.0), 'Google Ads')

        assert opp.type == OpportunityType.CREATIVE_OPTIMIZATION
        assert opp.priority == Priority.HIGH
        assert opp.issue == 'Google Ads CTR 50.0% below industry benchmark'
        assert opp.recommendation == 'Refresh ad creative to improve CTR from 1.00% to 2%'
        assert opp.impact == '50% improvement in click volume'
        assert opp.expectedResults.currentClicks == 1000
        assert opp.expectedResults.projectedClicks == 1500
        assert opp.expectedResults.additionalCustomers == 25

    def test_ctr_moderately_below_benchmark_is_medium_priority(self):
        [opp] = channel_opportunities('Google Ads', make_stats(ctr=1.5), 'Google Ads')
        assert opp.type == OpportunityType.CREATIVE_OPTIMIZATION
        assert opp.priority == Priority.MEDIUM

    def test_cvr_below_benchmark_funnel_optimization(self):
        [opp] = channel_opportunities('Google Ads', make_stats(cvr=2.0), 'Google Ads')

        assert opp.type == OpportunityType.FUNNEL_OPTIMIZATION
        assert opp.priority == Priority.HIGH
        assert opp.issue.startswith('Google Ads conversion rate 46.7% below benchmark')
        assert opp.recommendation.endswith('improve CVR from 2.00% to 3.75%')
        assert opp.expectedResults.currentConversions == 50

    def test_cvr_moderately_below_benchmark_is_medium_priority(self):
        [opp] = channel_opportunities('Google Ads', make_stats(cvr=2.9), 'Google Ads')
        assert opp.priority == Priority.MEDIUM

    def test_low_roas_profitability(self):
        [opp] = channel_opportunities('Google Ads', make_stats(roas=1.5), 'Google Ads')

        assert opp.type == OpportunityType.PROFITABILITY_OPTIMIZATION
        assert opp.priority == Priority.MEDIUM
        assert opp.issue == 'Google Ads ROAS of 1.50x below profitable threshold'
        assert opp.currentMetrics.roas == pytest.approx(1.5)

    def test_zero_roas_is_not_flagged(self):
        assert channel_opportunities('Google Ads', make_stats(roas=0), 'Google Ads') == []

    def test_rules_fire_independently_in_rule_order(self):
        stats = make_stats(score=20, ctr=1.0, cvr=2.0, roas=1.5)
        found = channel_opportunities('Google Ads', stats, 'Facebook')

        assert [opp.type for opp in found] == [
            OpportunityType.BUDGET_REALLOCATION,
            OpportunityType.CREATIVE_OPTIMIZATION,
            OpportunityType.FUNNEL_OPTIMIZATION,
            OpportunityType.PROFITABILITY_OPTIMIZATION,
        ]


# =============================================================================
# Test Class: TestOpportunityList
# =============================================================================

class TestOpportunityList:

    def test_strategic_reallocation_comes_first(self):
        channels = {
            'A': make_stats(score=90, avg_daily_spend=200),
            'B': make_stats(score=40, avg_daily_spend=150),
        }
        opportunities = identify_optimization_opportunities(channels)

        strategic = opportunities[0]
        assert strategic.type == OpportunityType.STRATEGIC_REALLOCATION
        assert strategic.channel is None
        assert strategic.issue == '50 point efficiency gap between best and worst channels'
        assert strategic.recommendation == 'Reallocate $38/day from B to A'
        assert strategic.impact == 'Projected 25% improvement in overall campaign efficiency'
        assert strategic.budgetMove.amount == 38
        assert strategic.budgetImpact.monthlyReallocation == 1140
        assert strategic.budgetImpact.projectedSavings == 342
        assert strategic.budgetImpact.riskLevel == 'low'

        budget = opportunities[1]
        assert budget.type == OpportunityType.BUDGET_REALLOCATION
        assert budget.channel == 'B'
        assert budget.budgetMove.amount == 45
        assert budget.budgetMove.to == 'A'
        assert len(opportunities) == 2

    def test_gap_of_thirty_has_no_strategic_move(self):
        channels = {'A': make_stats(score=80), 'B': make_stats(score=50)}
        types = [opp.type for opp in identify_optimization_opportunities(channels)]
        assert OpportunityType.STRATEGIC_REALLOCATION not in types

    def test_single_channel_has_no_strategic_move(self):
        opportunities = identify_optimization_opportunities({'A': make_stats(score=10)})
        assert [opp.type for opp in opportunities] == [OpportunityType.BUDGET_REALLOCATION]
        assert opportunities[0].budgetMove.to == 'A'

    def test_sorted_by_priority_with_stable_ties(self):
        channels = {
            'A': make_stats(roas=1.5),
            'B': make_stats(ctr=1.0),
            'C': make_stats(ctr=1.5),
        }
        opportunities = identify_optimization_opportunities(channels)

        assert [(opp.channel, opp.priority) for opp in opportunities] == [
            ('B', Priority.HIGH),
            ('A', Priority.MEDIUM),
            ('C', Priority.MEDIUM),
        ]

    def test_input_channel_order_is_preserved(self):
        channels = {
            'Low': make_stats(score=60, ctr=1.0),
            'High': make_stats(score=85, ctr=1.0),
        }
        before = list(channels)
        opportunities = identify_optimization_opportunities(channels)

        assert list(channels) == before
        assert [opp.channel for opp in opportunities] == ['Low', 'High']

    def test_empty_input(self):
        assert identify_optimization_opportunities({}) == []

    def test_rank_channels_best_first(self):
        ranked = rank_channels({'A': make_stats(score=10), 'B': make_stats(score=70)})
        assert [name for name, _ in ranked] == ['B', 'A']

    def test_sort_by_priority_puts_low_last(self):
        def opp(priority):
            return Opportunity(
                type=OpportunityType.FUNNEL_OPTIMIZATION,
                issue='x', recommendation='y', impact='z', timeline='t',
                priority=priority,
            )

        ordered = sort_by_priority([opp(Priority.LOW), opp(Priority.HIGH), opp(Priority.MEDIUM)])
        assert [o.priority for o in ordered] == [Priority.HIGH, Priority.MEDIUM, Priority.LOW]


# =============================================================================
# Test Class: TestOpportunitySerialization
# =============================================================================

class TestOpportunitySerialization:

    def test_budget_move_serializes_from_alias(self):
        [opp] = channel_opportunities('Google Ads', make_stats(score=10), 'Facebook')
        payload = opp.model_dump(by_alias=True, exclude_none=True)

        assert payload['budgetMove'] == {
            'from': 'Google Ads',
            'to': 'Facebook',
            'amount': 30,
            'frequency': 'daily',
        }
        assert 'expectedResults' not in payload

    def test_opportunities_are_immutable(self):
        [opp] = channel_opportunities('Google Ads', make_stats(score=10), 'Facebook')
        with pytest.raises(ValidationError):
            opp.priority = Priority.LOW
