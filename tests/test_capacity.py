from fundplanner.capacity import capacity_drift, compute_capacity
from fundplanner.model_interface.types import FinancialSnapshot, InsurancePremiums


def test_worked_example():
    s = FinancialSnapshot(monthly_income=100000, monthly_expenses=30000, yearly_expenses=60000,
                          insurance=InsurancePremiums(term=12000, health=10000, personal_accident=2000),
                          tax_slab="Above ₹15,00,000")
    c = compute_capacity(s)
    assert c.insurance_impact_monthly == 2000
    assert c.amortized_yearly_expenses_monthly == 5000
    assert c.total_monthly_outflow == 37000
    assert c.surplus_before_investment == 63000
    assert c.emergency_buffer == 15000
    assert c.investable_from_salary == 48000
    assert c.investable_from_corpus == 0
    assert c.total_investable == 48000


def test_buffer_is_larger_of_two_shares():
    c = compute_capacity(FinancialSnapshot(monthly_income=200000, monthly_expenses=0))
    assert c.emergency_buffer == 30000
    assert c.investable_from_salary == 170000


def test_corpus_keeps_a_fifth_liquid():
    c = compute_capacity(FinancialSnapshot(monthly_income=0, has_corpus=True, total_corpus_to_invest=500000))
    assert c.investable_from_corpus == 400000
    assert c.investable_from_salary == 0
    assert c.total_investable == 400000


def test_never_negative_on_deficit():
    c = compute_capacity(FinancialSnapshot(monthly_income=10000, monthly_expenses=50000))
    assert c.surplus_before_investment == 0
    assert c.investable_from_salary == 0
    assert c.emergency_buffer == 1500


def test_rounding_happens_once_per_field():
    # 1000/12 per month in premiums: 83.33..., rounded only at the end.
    c = compute_capacity(FinancialSnapshot(monthly_income=10000, monthly_expenses=1000,
                                           insurance=InsurancePremiums(term=1000)))
    assert c.insurance_impact_monthly == 83
    assert c.total_monthly_outflow == 1083
    assert c.surplus_before_investment == 8917
    assert c.investable_from_salary == 8917 - 1500


def test_capacity_drift_flags_only_off_figures():
    c = compute_capacity(FinancialSnapshot(monthly_income=100000, monthly_expenses=30000))
    reported = {"investableFromSalary": c.investable_from_salary + 0.5,
                "investableFromCorpus": c.investable_from_corpus + 5000,
                "emergencyBuffer": None}
    assert capacity_drift(reported, c) == ["investableFromCorpus"]
