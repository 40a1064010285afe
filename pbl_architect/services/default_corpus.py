"""系统内置的默认知识库：义务教育阶段跨学科主题学习的课程标准要点。"""

DEFAULT_CORPUS_LABEL = "系统默认课程标准"

DEFAULT_CORPUS = """\
《义务教育课程方案（2022年版）》跨学科主题学习要点

一、总体要求
1. 各门课程原则上用不少于10%的课时设计跨学科主题学习，加强学科间相互关联，带动课程综合化实施。
2. 跨学科主题学习以真实情境中的现象或问题为起点，引导学生综合运用多学科知识、方法与思维方式解决问题。
3. 作业设计应体现素养导向，减少机械重复训练，增加探究性、实践性、综合性任务。

二、核心素养
- 科学：科学观念、科学思维、探究实践、态度责任。
- 数学：会用数学的眼光观察现实世界，会用数学的思维思考现实世界，会用数学的语言表达现实世界。
- 物理：物理观念、科学思维、科学探究、科学态度与责任。
- 化学：化学观念、科学思维、科学探究与实践、科学态度与责任。
- 生物学：生命观念、科学思维、探究实践、态度责任。
- 地理：人地协调观、综合思维、区域认知、地理实践力。
- 历史：唯物史观、时空观念、史料实证、历史解释、家国情怀。
- 语文：文化自信、语言运用、思维能力、审美创造。
- 艺术：审美感知、艺术表现、创意实践、文化理解。

三、作业分层
- 基础层：围绕核心概念与基本事实，帮助学生理解定义、建立学科间的初步联系。
- 挑战层：提出开放性问题，要求学生提出假设、收集证据、进行推理与论证，并给出有创意的解决方案。

四、评价建议
1. 坚持过程性评价与结果性评价相结合，关注学生在任务中的投入与努力。
2. 对努力但尚未达成目标的学生给予鼓励性反馈；对表现优秀的学生提出更高层次的挑战。
3. 评语应具体、可操作，指向下一步改进。
"""
