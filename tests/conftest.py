"""
Shared fixtures for the wumbocc test-suite.
"""

import pytest

from wumbocc.pipeline import WumboFrontend


NESTED_STRUCTS = """\
struct Inner {
    int v;
};
struct Outer {
    struct Inner i;
    bool flag;
};
struct Outer o;
int main() {
    o.i.v = 3;
    return o.i.v;
}
"""


@pytest.fixture(scope="session")
def frontend():
    return WumboFrontend()


@pytest.fixture
def analyze(frontend):
    """source text -> FrontendResult"""
    def _analyze(source):
        return frontend.process_string(source)
    return _analyze


@pytest.fixture
def errors(analyze):
    """source text -> list of error messages in report order"""
    def _errors(source):
        return [d.message for d in analyze(source).diags.errors]
    return _errors
