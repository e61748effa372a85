"""Shared fixtures for core unit tests"""

import pytest


SAMPLE_CODE = """\
var foo = 1;
function bar() {
    if (!foo) {
        var foo = 10;
    }
    alert(foo);
}
bar();
"""

SAMPLE_BODY = f"""\
Do you know what value will be alerted if the following is executed?[^quiz]

```javascript
{SAMPLE_CODE}```

## Scoping in JavaScript

One of the sources of confusion is *scoping*; see [the standard][ecma] and `var *x*`.[^quiz]

[^quiz]: The answer is 10.

[ecma]: https://ecma-international.org/ "ECMA-262"
"""

SAMPLE_POST = f"""\
---
layout: default
title: JavaScript Scoping and Hoisting
---

{SAMPLE_BODY}"""


@pytest.fixture(name="sample_body")
def sample_body_fixture():
    return SAMPLE_BODY


@pytest.fixture(name="sample_post")
def sample_post_fixture():
    return SAMPLE_POST


@pytest.fixture(name="sample_code")
def sample_code_fixture():
    return SAMPLE_CODE
