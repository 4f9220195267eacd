from datetime import date
from clinicforms.services.csv_export import collect_headers, export_filename, slug, to_csv

def test_headers_are_union_in_first_seen_order():
    assert collect_headers([{"a": 1, "b": 2}, {"c": 3, "a": 4}]) == ["a", "b", "c"]

def test_quoting_rules():
    rows = [{"Field": "Mood", "2024-01-02": "A (JD)\nB (KL)"},
            {"Field": 'say "hi", please', "2024-01-02": None}]
    assert to_csv(rows) == 'Field,2024-01-02\nMood,"A (JD)\nB (KL)"\n"say ""hi"", please",'

def test_nested_values_are_json():
    assert to_csv([{"meals": ["Lunch", "Dinner"], "ok": True}]) == 'meals,ok\n"[""Lunch"", ""Dinner""]",true'

def test_empty_rows():
    assert to_csv([]) == ""

def test_filenames():
    assert slug("Daily Note #2") == "Daily_Note__2"
    assert export_filename("all_patients", date(2024, 3, 1)) == "all_patients_2024-03-01.csv"
