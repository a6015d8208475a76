from check_cert_chain.pem import BEGIN_MARKER, END_MARKER, extract_certificate_blocks

from conftest import build_transcript, make_certificate, to_pem


def test_extracts_blocks_in_order(chain_certs):
    certs = [chain_certs["leaf"], chain_certs["intermediate"], chain_certs["root"]]
    blocks = list(extract_certificate_blocks(build_transcript(certs)))

    assert len(blocks) == 3
    assert [block.position for block in blocks] == [0, 1, 2]
    for block, cert in zip(blocks, certs):
        assert block.text == to_pem(cert)


def test_filler_text_between_blocks_is_discarded():
    pems = [to_pem(make_certificate(f"host{i}.example.com")[0]) for i in range(4)]
    transcript = "header line\n" + "\nsome filler\n---\n".join(pems) + "trailer\n"

    blocks = list(extract_certificate_blocks(transcript))

    assert [block.text for block in blocks] == pems
    assert all(block.text.startswith(BEGIN_MARKER) for block in blocks)
    assert all(block.text.rstrip().endswith(END_MARKER) for block in blocks)


def test_unterminated_block_at_end_contributes_nothing():
    first = to_pem(make_certificate("one.example.com")[0])
    second = to_pem(make_certificate("two.example.com")[0])
    truncated = "\n".join(to_pem(make_certificate("three.example.com")[0]).splitlines()[:-1])
    transcript = first + "filler\n" + second + truncated

    blocks = list(extract_certificate_blocks(transcript))

    assert [block.text for block in blocks] == [first, second]


def test_begin_without_end_is_dropped_when_next_block_starts():
    second = to_pem(make_certificate("two.example.com")[0])
    transcript = f"{BEGIN_MARKER}\nMIIBroken\n" + second

    blocks = list(extract_certificate_blocks(transcript))

    assert len(blocks) == 1
    assert blocks[0].text == second


def test_empty_transcript_yields_nothing():
    blocks = extract_certificate_blocks("")
    assert list(blocks) == []
    assert not blocks
    assert len(blocks) == 0


def test_sequence_is_restartable(chain_certs):
    blocks = extract_certificate_blocks(build_transcript([chain_certs["leaf"], chain_certs["root"]]))

    assert len(blocks) == 2
    assert list(blocks) == list(blocks)
    assert bool(blocks)


def test_handles_crlf_line_endings(chain_certs):
    transcript = build_transcript([chain_certs["leaf"]]).replace("\n", "\r\n")
    blocks = list(extract_certificate_blocks(transcript))
    assert len(blocks) == 1
