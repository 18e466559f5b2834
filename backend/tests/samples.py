"""
テストで使う各形式のレポート
"""
import json

JUNIT_LOGIN_TESTS = """<?xml version="1.0" encoding="UTF-8"?>
<testsuites>
  <testsuite name="com.app.LoginTests" tests="3" failures="1" errors="0" skipped="0" time="1.5">
    <testcase name="testLoginSuccess" classname="com.app.LoginTests" time="0.5"/>
    <testcase name="testLogout" classname="com.app.LoginTests" time="0.25"/>
    <testcase name="testLoginFailure" classname="com.app.LoginTests" time="0.75">
      <failure message="expected 200 but was 401" type="AssertionError">AssertionError: expected 200 but was 401
    at com.app.LoginTests.testLoginFailure(LoginTests.java:42)</failure>
    </testcase>
  </testsuite>
</testsuites>
"""

JUNIT_MIXED = """<?xml version="1.0" encoding="UTF-8"?>
<testsuites>
  <testsuite name="App.Tests.Calc" tests="4" failures="0" errors="1" skipped="1" time="2">
    <testcase name="adds" classname="App.Tests.Calc" time="1.2"/>
    <testcase name="divides" classname="App.Tests.Calc" time="0.3">
      <error message="ZeroDivisionError">Traceback...</error>
    </testcase>
    <testcase name="subtracts" classname="App.Tests.Calc" time="0">
      <skipped message="not implemented"/>
    </testcase>
    <testcase name="multiplies" classname="App.Tests.Calc" time="0.1">
      <system-out>[[ATTACHMENT|/tmp/screens/multiplies.png]]</system-out>
    </testcase>
  </testsuite>
  <testsuite name="App.Tests.Empty" tests="0"></testsuite>
</testsuites>
"""

TESTNG_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testng-results skipped="1" failed="1" total="3" passed="1">
  <suite name="Regression" duration-ms="1500">
    <test name="Login">
      <class name="com.shop.CartTests">
        <test-method status="PASS" signature="setUp()" name="setUp" is-config="true" duration-ms="5"/>
        <test-method status="PASS" signature="addsItem()" name="addsItem" duration-ms="1200"/>
        <test-method status="FAIL" signature="removesItem()" name="removesItem" duration-ms="250">
          <exception class="java.lang.AssertionError">
            <message><![CDATA[expected [1] but found [2]]]></message>
            <full-stacktrace><![CDATA[java.lang.AssertionError: expected [1] but found [2]
  at com.shop.CartTests.removesItem(CartTests.java:30)]]></full-stacktrace>
          </exception>
        </test-method>
        <test-method status="SKIP" signature="checkout()" name="checkout" duration-ms="0"/>
      </class>
    </test>
  </suite>
</testng-results>
"""

XUNIT_REPORT = """<?xml version="1.0" encoding="utf-8"?>
<assemblies>
  <assembly name="MyApp.Tests.dll" total="3" passed="1" failed="1" skipped="1">
    <collection name="Test collection for MyApp.Tests.CalculatorTests" total="3" passed="1" failed="1" skipped="1" time="0.5">
      <test name="MyApp.Tests.CalculatorTests.Adds" type="MyApp.Tests.CalculatorTests" method="Adds" time="0.1" result="Pass"/>
      <test name="MyApp.Tests.CalculatorTests.Divides" type="MyApp.Tests.CalculatorTests" method="Divides" time="0.4" result="Fail">
        <failure exception-type="Xunit.Sdk.EqualException">
          <message><![CDATA[Assert.Equal() Failure]]></message>
          <stack-trace><![CDATA[at MyApp.Tests.CalculatorTests.Divides()]]></stack-trace>
        </failure>
      </test>
      <test name="MyApp.Tests.CalculatorTests.Pending" type="MyApp.Tests.CalculatorTests" method="Pending" time="0" result="Skip">
        <reason><![CDATA[Not ready]]></reason>
      </test>
    </collection>
  </assembly>
</assemblies>
"""

NUNIT3_REPORT = """<?xml version="1.0" encoding="utf-8"?>
<test-run id="2" testcasecount="3" result="Failed" engine-version="3.16.0.0">
  <test-suite type="Assembly" name="MyApp.Tests.dll">
    <test-suite type="TestFixture" name="StackTests" fullname="MyApp.Tests.StackTests" classname="MyApp.Tests.StackTests">
      <test-case name="Push" fullname="MyApp.Tests.StackTests.Push" classname="MyApp.Tests.StackTests" result="Passed" duration="0.012"/>
      <test-case name="Pop" fullname="MyApp.Tests.StackTests.Pop" classname="MyApp.Tests.StackTests" result="Failed" duration="0.020">
        <failure>
          <message><![CDATA[Expected 1 but was 0]]></message>
          <stack-trace><![CDATA[at MyApp.Tests.StackTests.Pop()]]></stack-trace>
        </failure>
      </test-case>
      <test-case name="Peek" fullname="MyApp.Tests.StackTests.Peek" classname="MyApp.Tests.StackTests" result="Skipped" label="Ignored" duration="0">
        <reason><message><![CDATA[Later]]></message></reason>
      </test-case>
    </test-suite>
  </test-suite>
</test-run>
"""

NUNIT2_REPORT = """<?xml version="1.0" encoding="utf-8"?>
<test-results name="MyApp.Tests.dll" total="2" errors="1" failures="0">
  <test-suite type="Assembly" name="MyApp.Tests.dll">
    <results>
      <test-suite type="TestFixture" name="QueueTests">
        <results>
          <test-case name="MyApp.Tests.QueueTests.Enqueue" executed="True" result="Success" success="True" time="0.015"/>
          <test-case name="MyApp.Tests.QueueTests.Dequeue" executed="True" result="Error" success="False" time="0.002">
            <failure><message><![CDATA[NullReferenceException]]></message></failure>
          </test-case>
        </results>
      </test-suite>
    </results>
  </test-suite>
</test-results>
"""

TRX_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<TestRun id="run-1" name="ci" xmlns="http://microsoft.com/schemas/VisualStudio/TeamTest/2010">
  <Results>
    <UnitTestResult testId="t1" testName="Adds" outcome="Passed" duration="00:00:01.5000000"/>
    <UnitTestResult testId="t2" testName="Divides" outcome="Failed" duration="00:00:00.2500000">
      <Output>
        <ErrorInfo>
          <Message>Assert.AreEqual failed.</Message>
          <StackTrace>at MyApp.Tests.MathTests.Divides()</StackTrace>
        </ErrorInfo>
      </Output>
      <ResultFiles><ResultFile path="logs\\divides.log"/></ResultFiles>
    </UnitTestResult>
    <UnitTestResult testId="t3" testName="Slow" outcome="Timeout" duration="00:01:00"/>
  </Results>
  <TestDefinitions>
    <UnitTest name="Adds" id="t1"><TestMethod className="MyApp.Tests.MathTests, MyApp.Tests, Version=1.0.0.0" name="Adds"/></UnitTest>
    <UnitTest name="Divides" id="t2"><TestMethod className="MyApp.Tests.MathTests, MyApp.Tests, Version=1.0.0.0" name="Divides"/></UnitTest>
    <UnitTest name="Slow" id="t3"><TestMethod className="MyApp.Tests.MathTests, MyApp.Tests, Version=1.0.0.0" name="Slow"/></UnitTest>
  </TestDefinitions>
</TestRun>
"""

MOCHA_REPORT = json.dumps({
    "stats": {"suites": 1, "tests": 3, "passes": 1, "pending": 1, "failures": 1},
    "tests": [
        {"title": "returns the user", "fullTitle": "UserService getUser returns the user", "duration": 12, "err": {}},
        {"title": "throws when missing", "fullTitle": "UserService getUser throws when missing", "duration": 3,
         "err": {"message": "expected error", "stack": "AssertionError: expected error\n    at Context.<anonymous>"}},
        {"title": "caches", "fullTitle": "UserService getUser caches", "duration": 0, "err": {}},
    ],
    "pending": [{"title": "caches", "fullTitle": "UserService getUser caches"}],
    "failures": [],
    "passes": [],
})

MOCHAWESOME_REPORT = json.dumps({
    "stats": {"tests": 2},
    "results": [{
        "title": "",
        "file": "test/api.spec.js",
        "tests": [],
        "suites": [{
            "title": "API",
            "tests": [],
            "suites": [{
                "title": "orders",
                "tests": [
                    {"title": "lists orders", "fullTitle": "API orders lists orders", "duration": 40, "state": "passed",
                     "pass": True, "fail": False, "pending": False, "skipped": False, "err": {}},
                    {"title": "creates order", "fullTitle": "API orders creates order", "duration": 80, "state": "failed",
                     "pass": False, "fail": True, "pending": False, "skipped": False,
                     "err": {"message": "500 != 201", "estack": "AssertionError: 500 != 201"}},
                ],
                "suites": [],
            }],
        }],
    }],
})

CUCUMBER_REPORT = json.dumps([{
    "uri": "features/checkout.feature",
    "keyword": "Feature",
    "name": "Checkout",
    "elements": [
        {"keyword": "Background", "type": "background", "name": "", "steps": [
            {"keyword": "Given ", "name": "a logged in user", "result": {"status": "passed", "duration": 1000000}},
        ]},
        {"keyword": "Scenario", "type": "scenario", "name": "Pay by card", "steps": [
            {"keyword": "Given ", "name": "a cart with 1 item", "result": {"status": "passed", "duration": 500000000}},
            {"keyword": "When ", "name": "I pay by card", "result": {"status": "failed", "duration": 250000000,
                                                                  "error_message": "Card declined\nat steps.js:10"}},
            {"keyword": "Then ", "name": "I see a receipt", "result": {"status": "skipped"}},
        ]},
        {"keyword": "Scenario", "type": "scenario", "name": "Pay by invoice", "steps": [
            {"keyword": "Given ", "name": "a cart with 1 item", "result": {"status": "passed", "duration": 1000000000}},
        ]},
    ],
}])
