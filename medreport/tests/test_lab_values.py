import pytest

from medreport.services.lab_values import extract_lab_values
from medreport.services.reference_ranges import get_rules, load_rules


def _only(text):
    findings = extract_lab_values(text)
    assert len(findings) == 1, findings
    return findings[0]


@pytest.mark.parametrize(
    "text,name,status",
    [
        # Blood glucose: >140 abnormal, >100 warning
        ("Glucose: 140.1 mg/dL", "Blood Glucose", "abnormal"),
        ("Glucose: 140 mg/dL", "Blood Glucose", "warning"),
        ("Glucose: 139.9 mg/dL", "Blood Glucose", "warning"),
        ("Blood Glucose: 100.1 mg/dL", "Blood Glucose", "warning"),
        ("Blood Glucose: 100 mg/dL", "Blood Glucose", "normal"),
        ("Blood Glucose: 99.9 mg/dL", "Blood Glucose", "normal"),
        # Total cholesterol: >240, >200
        ("Total Cholesterol: 240.1 mg/dL", "Total Cholesterol", "abnormal"),
        ("Total Cholesterol: 240 mg/dL", "Total Cholesterol", "warning"),
        ("Cholesterol: 200.1 mg/dL", "Total Cholesterol", "warning"),
        ("Cholesterol: 200 mg/dL", "Total Cholesterol", "normal"),
        # HDL: lower is worse, <40 abnormal, <60 warning
        ("HDL: 39.9 mg/dL", "HDL Cholesterol", "abnormal"),
        ("HDL: 40 mg/dL", "HDL Cholesterol", "warning"),
        ("HDL Cholesterol: 59.9 mg/dL", "HDL Cholesterol", "warning"),
        ("HDL Cholesterol: 60 mg/dL", "HDL Cholesterol", "normal"),
        # LDL: >160, >130
        ("LDL: 160.1 mg/dL", "LDL Cholesterol", "abnormal"),
        ("LDL: 160 mg/dL", "LDL Cholesterol", "warning"),
        ("LDL Cholesterol: 130.1 mg/dL", "LDL Cholesterol", "warning"),
        ("LDL Cholesterol: 130 mg/dL", "LDL Cholesterol", "normal"),
        # Triglycerides: >200, >150
        ("Triglycerides: 200.1 mg/dL", "Triglycerides", "abnormal"),
        ("Triglycerides: 200 mg/dL", "Triglycerides", "warning"),
        ("Triglycerides: 150.1 mg/dL", "Triglycerides", "warning"),
        ("Triglycerides: 150 mg/dL", "Triglycerides", "normal"),
        # A1C: >6.5, >5.7
        ("HbA1c: 6.6 %", "Hemoglobin A1C", "abnormal"),
        ("Hemoglobin A1C: 6.5%", "Hemoglobin A1C", "warning"),
        ("A1C: 5.8 %", "Hemoglobin A1C", "warning"),
        ("A1C: 5.7 %", "Hemoglobin A1C", "normal"),
    ],
)
def test_threshold_boundaries(text, name, status):
    finding = _only(text)
    assert finding.name == name
    assert finding.status == status


@pytest.mark.parametrize(
    "reading,status",
    [
        ("141/80", "abnormal"),
        ("130/91", "abnormal"),
        ("140/90", "warning"),
        ("121/80", "warning"),
        ("120/81", "warning"),
        ("120/80", "normal"),
        ("110/70", "normal"),
    ],
)
def test_blood_pressure_either_side_counts(reading, status):
    finding = _only(f"Blood Pressure: {reading} mmHg")
    assert finding.name == "Blood Pressure"
    assert finding.value == f"{reading} mmHg"
    assert finding.status == status


def test_glucose_and_pressure_scenario():
    findings = extract_lab_values("Blood Glucose: 145 mg/dL, Blood Pressure: 150/95 mmHg")
    assert [(f.name, f.value, f.status) for f in findings] == [
        ("Blood Glucose", "145 mg/dL", "abnormal"),
        ("Blood Pressure", "150/95 mmHg", "abnormal"),
    ]


def test_matching_is_case_insensitive_and_unit_optional():
    finding = _only("GLUCOSE 92")
    assert finding.value == "92 mg/dL"
    assert finding.status == "normal"
    assert _only("bp: 118/76").status == "normal"


def test_first_match_only_per_metric():
    findings = extract_lab_values("Glucose: 90 mg/dL\nRepeat glucose: 180 mg/dL")
    assert len(findings) == 1
    assert findings[0].value == "90 mg/dL"


def test_hdl_and_ldl_do_not_count_as_total_cholesterol():
    findings = extract_lab_values("HDL Cholesterol: 45 mg/dL\nLDL Cholesterol: 170 mg/dL")
    assert [f.name for f in findings] == ["HDL Cholesterol", "LDL Cholesterol"]


def test_total_cholesterol_found_after_hdl_line():
    findings = extract_lab_values("HDL Cholesterol: 45 mg/dL\nTotal Cholesterol: 210 mg/dL")
    by_name = {f.name: f for f in findings}
    assert by_name["Total Cholesterol"].value == "210 mg/dL"
    assert by_name["Total Cholesterol"].status == "warning"
    assert by_name["HDL Cholesterol"].status == "warning"


def test_hyphenated_hdl_is_not_total_cholesterol():
    findings = extract_lab_values("HDL-Cholesterol: 35 mg/dL")
    assert [(f.name, f.value, f.status) for f in findings] == [("HDL Cholesterol", "35 mg/dL", "abnormal")]
    ldl = extract_lab_values("LDL - Cholesterol: 170 mg/dL")
    assert [f.name for f in ldl] == ["LDL Cholesterol"]


def test_non_hdl_cholesterol_is_neither_hdl_nor_total():
    assert extract_lab_values("Non-HDL Cholesterol: 190 mg/dL") == []
    assert extract_lab_values("non HDL cholesterol 190") == []


def test_mmol_values_are_compared_in_mg_dl():
    finding = _only("Glucose: 7.9 mmol/L")
    assert finding.value == "7.9 mmol/L"
    assert finding.status == "abnormal"
    assert _only("Glucose: 5.0 mmol/L").status == "normal"


def test_metrics_are_extracted_independently_in_table_order():
    text = "A1C: 7.0 %\nTriglycerides: 120 mg/dL\nGlucose: 95 mg/dL"
    assert [f.name for f in extract_lab_values(text)] == ["Blood Glucose", "Triglycerides", "Hemoglobin A1C"]


def test_no_match_returns_empty_list():
    assert extract_lab_values("The patient reports feeling well.") == []
    assert extract_lab_values("") == []


def test_rule_table_loads_from_yaml():
    rules = get_rules()
    assert [r.name for r in rules][0] == "Blood Glucose"
    assert len(rules) == 7
    assert load_rules() == rules


def test_rule_with_unknown_direction_is_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("labs:\n  - {name: X, unit: u, aliases: [x], direction: sideways, abnormal: 1, warning: 0}\n")
    with pytest.raises(ValueError):
        load_rules(path)
