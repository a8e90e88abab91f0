from feed_parser import parse_arxiv_feed, parse_rss_feed

ARXIV_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>ArXiv Query: search_query=cat:cs.AI</title>
  <entry>
    <id>http://arxiv.org/abs/2602.01234v1</id>
    <published>2026-02-26T18:00:01Z</published>
    <title>Agentic Planning
      with World Models</title>
    <summary>  We propose a planner
      that uses learned world models.  </summary>
    <link href="http://arxiv.org/abs/2602.01234v1" rel="alternate" type="text/html"/>
    <link title="pdf" href="http://arxiv.org/pdf/2602.01234v1" rel="related" type="application/pdf"/>
    <arxiv:primary_category xmlns:arxiv="http://arxiv.org/schemas/atom" term="cs.AI"/>
    <category term="cs.AI" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.LG" scheme="http://arxiv.org/schemas/atom"/>
  </entry>
  <entry>
    <id>http://arxiv.org/abs/2602.05678v2</id>
    <published>2026-02-25T10:00:00Z</published>
    <summary>Entry without a title is dropped.</summary>
  </entry>
  <entry>
    <id>http://arxiv.org/abs/2602.09999v1</id>
    <published>2026-02-24T10:00:00Z</published>
    <title>No HTML Link</title>
    <summary>Falls back to the id.</summary>
  </entry>
</feed>
"""

RSS_XML = """<?xml version="1.0"?>
<rss version="2.0">
<channel>
  <title>Example Tech</title>
  <item>
    <title><![CDATA[OpenAI ships a new model]]></title>
    <link>https://example.com/openai-model</link>
    <pubDate>Fri, 27 Feb 2026 14:30:00 +0000</pubDate>
    <description><![CDATA[<p>The <b>release</b> targets developers.</p>]]></description>
    <category>AI</category>
    <category><![CDATA[Startups]]></category>
  </item>
  <item>
    <title>Missing link is dropped</title>
    <description>No link here.</description>
  </item>
  <item>
    <title>Phones &amp; tablets roundup</title>
    <link>https://example.com/phones</link>
    <description>Hardware news.</description>
  </item>
</channel>
</rss>
"""

ATOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>tag:www.producthunt.com,2005:Post/1</id>
    <published>2026-02-27T08:00:00-08:00</published>
    <title>Scribe - AI meeting notes</title>
    <link rel="alternate" type="text/html" href="https://www.producthunt.com/products/scribe"/>
    <content type="html">&lt;p&gt;Notes that write themselves&lt;/p&gt;</content>
  </entry>
</feed>
"""


def test_parse_arxiv_feed_extracts_fields() -> None:
    entries = parse_arxiv_feed(ARXIV_XML)

    assert [entry.entry_id for entry in entries] == [
        "http://arxiv.org/abs/2602.01234v1",
        "http://arxiv.org/abs/2602.09999v1",
    ]
    first = entries[0]
    assert first.title == "Agentic Planning with World Models"
    assert first.body == "We propose a planner that uses learned world models."
    assert first.published == "2026-02-26T18:00:01Z"
    assert first.link == "http://arxiv.org/abs/2602.01234v1"
    assert first.categories == ("cs.AI", "cs.LG")


def test_parse_arxiv_feed_link_falls_back_to_id() -> None:
    entries = parse_arxiv_feed(ARXIV_XML)
    assert entries[1].link == "http://arxiv.org/abs/2602.09999v1"


def test_parse_arxiv_feed_empty_or_garbage_payload() -> None:
    assert parse_arxiv_feed("") == []
    assert parse_arxiv_feed("<html>rate limited</html>") == []


def test_parse_rss_feed_unwraps_cdata_and_strips_html() -> None:
    entries = parse_rss_feed(RSS_XML)

    assert len(entries) == 2
    first = entries[0]
    assert first.title == "OpenAI ships a new model"
    assert first.link == "https://example.com/openai-model"
    assert first.published == "Fri, 27 Feb 2026 14:30:00 +0000"
    assert first.body == "The release targets developers."
    assert first.categories == ("AI", "Startups")
    assert first.entry_id == "https://example.com/openai-model"


def test_parse_rss_feed_unescapes_entities() -> None:
    entries = parse_rss_feed(RSS_XML)
    assert entries[1].title == "Phones & tablets roundup"


def test_parse_rss_feed_drops_items_without_link() -> None:
    titles = [entry.title for entry in parse_rss_feed(RSS_XML)]
    assert "Missing link is dropped" not in titles


def test_parse_rss_feed_reads_atom_entries() -> None:
    entries = parse_rss_feed(ATOM_XML)

    assert len(entries) == 1
    entry = entries[0]
    assert entry.title == "Scribe - AI meeting notes"
    assert entry.link == "https://www.producthunt.com/products/scribe"
    assert entry.published == "2026-02-27T08:00:00-08:00"
    assert entry.body == "Notes that write themselves"


def test_parse_rss_feed_truncated_payload_keeps_complete_items() -> None:
    truncated = RSS_XML.split("<item>\n    <title>Phones")[0] + "<item><title>Cut off"
    entries = parse_rss_feed(truncated)
    assert [entry.title for entry in entries] == ["OpenAI ships a new model"]


def test_parse_rss_feed_decodes_title_entities_once() -> None:
    xml = """<rss><channel>
      <item>
        <title>Escaping &amp;lt;div&amp;gt; in prompts</title>
        <link>https://example.com/escaping</link>
        <category>AT&amp;amp;T</category>
        <description>&lt;p&gt;Use &amp;amp; in &lt;b&gt;HTML&lt;/b&gt;&lt;/p&gt;</description>
      </item>
    </channel></rss>"""

    entry = parse_rss_feed(xml)[0]

    assert entry.title == "Escaping &lt;div&gt; in prompts"
    assert entry.categories == ("AT&amp;T",)
    assert entry.body == "Use & in HTML"
