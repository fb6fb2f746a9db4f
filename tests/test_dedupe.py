from jobsweep.models import CanonicalJob
from jobsweep.pipeline.dedupe import KnownJobIndex, accept_if_new, company_title_key, is_duplicate


def _job(title="Designer", company="Acme", url="https://acme.com/j/1"):
    return CanonicalJob(title=title, company=company, url=url)


def test_index_from_stored_rows_is_lower_cased():
    index = KnownJobIndex.from_rows([
        {"title": "Product Designer", "company": "ACME", "url": "https://Acme.com/J/1"},
    ])

    assert "acme|product designer" in index.company_title_keys
    assert "https://acme.com/j/1" in index.urls


def test_url_match_alone_is_a_duplicate():
    index = KnownJobIndex.from_rows([{"title": "Other", "company": "Else", "url": "https://acme.com/j/1"}])
    assert is_duplicate(_job(title="Brand New", company="Nobody"), index)


def test_company_title_match_alone_is_a_duplicate():
    index = KnownJobIndex.from_rows([{"title": "designer", "company": "acme", "url": "https://old.example/1"}])
    assert is_duplicate(_job(url="https://new.example/2"), index)


def test_unrelated_job_is_new():
    index = KnownJobIndex.from_rows([{"title": "Engineer", "company": "Acme", "url": "https://acme.com/j/9"}])
    assert not is_duplicate(_job(), index)


def test_rows_with_blank_fields_do_not_poison_the_index():
    index = KnownJobIndex.from_rows([{"title": "", "company": "", "url": ""}, {}])
    assert index.urls == set()
    assert index.company_title_keys == set()


def test_accept_if_new_registers_both_keys():
    index = KnownJobIndex()
    first = _job()
    same_identity = _job(url="https://acme.com/j/2")
    same_url = _job(title="Different", company="Corp")

    assert accept_if_new(first, index)
    assert not accept_if_new(same_identity, index)
    assert not accept_if_new(same_url, index)
    assert len(index) == 1


def test_company_title_key():
    assert company_title_key("Acme", "Designer") == "acme|designer"
