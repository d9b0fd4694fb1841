import argparse
import datetime
import shutil
import sys
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from postpress.modules.assembler import Post, assemble
from postpress.modules.config import CONFIG_FILE, load_site_config
from postpress.modules.errors import BuildError
from postpress.modules.feed import generate_rss_feed
from postpress.modules.linkcheck import check_broken_links, print_broken_links
from postpress.modules.media import PillowImages, apply_effects
from postpress.modules.nodes import parse_markdown
from postpress.modules.renderer import ImageCandidate, render_document
from postpress.modules.scaffold import CONTENT_FILE, new_post

VERSION = "0.1.0"

TEMPLATES_DIR = "template"
TEMPLATE_FILES = ["post.html", "index.html", "style.css"]
BUNDLED_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

# Entries in the target directory that survive a rebuild
PRESERVED_ENTRIES = {".git", "readme.md"}

GOOGLE_ANALYTICS_SNIPPET = """<!-- Google tag (gtag.js) -->
<script async src="https://www.googletagmanager.com/gtag/js?id={id}"></script>
<script>
  window.dataLayer = window.dataLayer || [];
  function gtag() {{ dataLayer.push(arguments); }}
  gtag('js', new Date());
  gtag('config', '{id}');
</script>"""


def populate_templates(project_root, force=False):
    """Copy the bundled templates into the project, keeping edited ones unless forced"""
    template_dir = Path(project_root) / TEMPLATES_DIR
    if template_dir.exists() and not template_dir.is_dir():
        raise BuildError(str(template_dir), "template path is not a folder")
    template_dir.mkdir(parents=True, exist_ok=True)

    for name in TEMPLATE_FILES:
        target = template_dir / name
        if force or not target.exists():
            shutil.copyfile(BUNDLED_TEMPLATES_DIR / name, target)
    return template_dir


def prepare_target_dir(target_dir):
    """Empty the target directory, keeping .git and README.md"""
    target_dir = Path(target_dir)
    if target_dir.exists():
        if not target_dir.is_dir():
            raise BuildError(str(target_dir), "target is not a folder")
        for item in sorted(target_dir.iterdir()):
            if item.name.lower() in PRESERVED_ENTRIES:
                continue
            print(f"[INFO] Removing {item}")
            if item.is_dir():
                shutil.rmtree(item)
            else:
                item.unlink()
    else:
        target_dir.mkdir(parents=True)


def write_html_file(file_path, html_content):
    """Write a generated file, creating its folder first"""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(html_content, encoding='utf-8')


def render_template(env, template_name, **kwargs):
    return env.get_template(template_name).render(**kwargs)


def build_site_data(site_config):
    """Template variables shared by every page"""
    data = {
        'blog_title': site_config.title,
        'blog_description': site_config.description,
        'blog_url': site_config.url,
        'repo': site_config.repo,
        'version': VERSION,
        'google_analytics': '',
    }
    if site_config.google_analytics_id:
        data['google_analytics'] = GOOGLE_ANALYTICS_SNIPPET.format(id=site_config.google_analytics_id)
    if site_config.logo:
        data['logo'] = site_config.logo
    return data


def load_logo_candidate(site_config, images):
    """The logo competes for every post's meta image"""
    if not site_config.logo:
        return None
    try:
        width, height = images.size(site_config.logo)
    except OSError as e:
        raise BuildError(site_config.logo, f"cannot read logo: {e}", field="logo") from e
    return ImageCandidate.from_size(site_config.logo, width, height)


def load_post(folder, site_config, images, target_dir, logo_candidate=None, include_drafts=False):
    """Render one content folder and publish its media; returns None for drafts"""
    content_path = site_config.root / folder / CONTENT_FILE
    try:
        markdown_text = content_path.read_text(encoding='utf-8')
    except OSError as e:
        raise BuildError(folder, f"cannot read {content_path}: {e}", field=CONTENT_FILE) from e

    body_html, ctx = render_document(parse_markdown(markdown_text), folder, images, logo_candidate)

    if ctx.frontmatter.is_draft and not include_drafts:
        print(f"[INFO] Skipping draft {folder}")
        return None

    post = Post.from_render(folder, body_html, ctx, discussion_url=site_config.discussion_url)
    apply_effects(ctx.effects, site_config.root, target_dir, document=folder)
    return post


def index_page_data(site_data, bundle, page_tag=None):
    data = dict(site_data)
    data['posts'] = [post.template_data() for post in bundle.posts]
    data['pages'] = bundle.page_links
    if bundle.prev_link:
        data['prev'] = bundle.prev_link
    if bundle.next_link:
        data['next'] = bundle.next_link
    if page_tag:
        data['page_tag'] = page_tag
    return data


def page_file(directory, number):
    name = "index.html" if number == 1 else f"index{number}.html"
    return Path(directory) / name


def resolve_target_dir(site_config, target=None):
    """--target wins over the config; the config target is relative to the config file"""
    return Path(target) if target else site_config.root / site_config.target


def build_site(config_path=CONFIG_FILE, target=None, include_drafts=False, force_templates=False, images=None):
    """Build the whole site from a config file; returns the assembled corpus"""
    current_time = datetime.datetime.now()
    site_config = load_site_config(config_path)
    target_dir = resolve_target_dir(site_config, target)
    images = images or PillowImages(site_config.root)

    print("Building site...")
    template_dir = populate_templates(site_config.root, force=force_templates)
    env = Environment(loader=FileSystemLoader(str(template_dir)))
    prepare_target_dir(target_dir)

    logo_candidate = load_logo_candidate(site_config, images)

    posts = []
    for folder in site_config.content:
        post = load_post(folder, site_config, images, target_dir, logo_candidate, include_drafts)
        if post is not None:
            posts.append(post)

    corpus = assemble(posts)
    site_data = build_site_data(site_config)

    for post in corpus.posts:
        print(f"Generating article {post.date_label} {post.title}")
        data = dict(site_data)
        data.update(post.template_data())
        write_html_file(target_dir / post.source_id / "index.html", render_template(env, "post.html", **data))

    if not corpus.pages:
        print("[WARNING] No published posts, no index page generated")
    for number, bundle in enumerate(corpus.pages, start=1):
        write_html_file(
            page_file(target_dir, number),
            render_template(env, "index.html", **index_page_data(site_data, bundle)),
        )

    for listing in corpus.tags:
        for number, bundle in enumerate(listing.pages, start=1):
            write_html_file(
                page_file(target_dir / "tags" / listing.slug, number),
                render_template(env, "index.html", **index_page_data(site_data, bundle, listing.label)),
            )

    write_html_file(target_dir / "rss.xml", generate_rss_feed(site_config, corpus.posts))

    if site_config.logo:
        logo_target = target_dir / site_config.logo
        logo_target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(site_config.root / site_config.logo, logo_target)
    shutil.copyfile(template_dir / "style.css", target_dir / "style.css")

    # The only time-dependent artifact of a build
    (target_dir / "current_time.txt").write_text(current_time.strftime("%Y-%m-%d %H:%M:%S"), encoding='utf-8')

    print(f"[INFO] Built {len(corpus.posts)} posts, {len(corpus.pages)} index pages, {len(corpus.tags)} tags into {target_dir}")
    return corpus


def main(argv=None):
    parser = argparse.ArgumentParser(description='Static blog generator for folders of markdown posts')
    parser.add_argument('--config', default=CONFIG_FILE,
                        help=f'Site configuration file (default: {CONFIG_FILE})')
    parser.add_argument('--target',
                        help='Output folder, overriding the target setting of the config')
    parser.add_argument('--include-drafts', action='store_true',
                        help='Include posts marked isDraft in the generated site')
    parser.add_argument('--force-templates', action='store_true',
                        help='Overwrite the project templates with the bundled ones')
    parser.add_argument('--check-links', action='store_true',
                        help='Check for broken internal links after site generation')
    parser.add_argument('--new-post', metavar='TITLE',
                        help='Create a new post folder and add it to the config, then exit')
    args = parser.parse_args(argv)

    try:
        if args.new_post:
            new_post(args.new_post, args.config)
            return 0

        build_site(args.config, target=args.target,
                   include_drafts=args.include_drafts,
                   force_templates=args.force_templates)

        if args.check_links:
            site_config = load_site_config(args.config)
            target_dir = resolve_target_dir(site_config, args.target)
            print_broken_links(check_broken_links(target_dir))
    except BuildError as e:
        print(f"[ERROR] {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
