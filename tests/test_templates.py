from autosensor.templates import (
    UNIFIED_RULES_INCLUDE,
    LibDaqPc,
    PulledPorkConf,
    SnortConfOverrides,
    SystemdUnit,
    pulledpork_snort_version,
)

from conftest import OINKCODE

STOCK_CONF = """\
var WHITE_LIST_PATH ../rules
var BLACK_LIST_PATH ../rules
dynamicpreprocessor directory /usr/local/lib/snort_dynamicpreprocessor/
dynamicengine /usr/local/lib/snort_dynamicengine/libsf_engine.so
dynamicdetection directory /usr/local/lib/snort_dynamicrules
# output unified2: filename merged.log, limit 128, nostamp, mpls_event_types, vlan_event_types
include $RULE_PATH/local.rules
include $RULE_PATH/app-detect.rules
include $PREPROC_RULE_PATH/preprocessor.rules
"""


def test_snort_conf_overrides():
    out = SnortConfOverrides("/opt/snort").apply(STOCK_CONF).splitlines()

    assert "var WHITE_LIST_PATH /opt/snort/rules" in out
    assert "var BLACK_LIST_PATH /opt/snort/rules" in out
    assert "dynamicpreprocessor directory /opt/snort/lib/snort_dynamicpreprocessor" in out
    assert "dynamicengine /opt/snort/lib/snort_dynamicengine/libsf_engine.so" in out
    assert "dynamicdetection directory /opt/snort/snort_dynamicrules" in out
    assert "output unified2: filename snort.u2, limit 128" in out
    assert "#include $RULE_PATH/local.rules" in out
    assert "#include $RULE_PATH/app-detect.rules" in out
    # preprocessor rules are not PulledPork-managed
    assert "include $PREPROC_RULE_PATH/preprocessor.rules" in out
    assert out.count(UNIFIED_RULES_INCLUDE) == 1


def test_snort_conf_overrides_are_idempotent():
    o = SnortConfOverrides("/opt/snort")
    once = o.apply(STOCK_CONF)
    assert o.apply(once) == once


def test_pulledpork_snort_version():
    assert pulledpork_snort_version("snort-2.9.20") == "2.9.20.0"
    assert pulledpork_snort_version("2.9.16.1") == "2.9.16.1"


def test_pulledpork_conf():
    text = PulledPorkConf(
        oinkcode=OINKCODE, base_dir="/opt/snort", snort_version="2.9.20.0", distro="Ubuntu-20-04"
    ).render()

    assert f"rule_url=https://www.snort.org/reg-rules/|snortrules-snapshot.tar.gz|{OINKCODE}" in text
    assert "rule_path=/opt/snort/rules/snort.rules" in text
    assert "snort_path=/opt/snort/bin/snort" in text
    assert "snort_version=2.9.20.0" in text
    assert "distro=Ubuntu-20-04" in text
    assert "IPRVersion=/opt/snort/rules/iplists" in text


def test_systemd_unit_render():
    unit = SystemdUnit(
        description="Suricata AFPACKET Bridge",
        exec_start="/usr/bin/suricata -c /etc/suricata/suricata.yaml --af-packet=eth1:eth2",
        user="suricata",
        group="suricata",
        pid_file="/var/run/suricata.pid",
        service_type=None,
    )
    text = unit.render()

    assert text.startswith("[Unit]\nDescription=Suricata AFPACKET Bridge\n")
    assert "Type=" not in text
    assert "User=suricata" in text
    assert "Restart=always" in text
    assert text.endswith("[Install]\nWantedBy=multi-user.target\n")


def test_libdaq_pc():
    text = LibDaqPc(version="2.0.7").render()
    assert "Version: 2.0.7" in text
    assert "prefix=/usr/local" in text
